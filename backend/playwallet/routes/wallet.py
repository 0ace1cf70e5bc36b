"""Wallet route handlers.

Endpoints:
    POST /api/wallet/deposit       -- Credit the account (account).
    POST /api/wallet/withdraw      -- Debit the account (account).
    GET  /api/wallet/transactions  -- Recent transactions (account).
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from playwallet.auth.dependencies import get_current_account_id
from playwallet.models.common import Money
from playwallet.models.transaction import TransactionResponse
from playwallet.routes.dependencies import get_gateway
from playwallet.services.account_gateway import AccountGateway
from playwallet.services.settlement_engine import BalanceChange

logger = logging.getLogger("playwallet.routes.wallet")

router = APIRouter(prefix="/wallet", tags=["Wallet"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _balance_change_response(change: BalanceChange) -> "BalanceChangeResponse":
    return BalanceChangeResponse(
        new_balance=change.new_balance,
        transaction=TransactionResponse.model_validate(
            change.transaction.model_dump(mode="json")
        ),
    )


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class AmountRequest(BaseModel):
    """Request body for a deposit or withdrawal.

    ``amount`` is validated by the gateway so every malformed value is
    reported as ``INVALID_AMOUNT``.
    """
    amount: Any = Field(..., description="Amount in currency units, at most 2 decimals")


class BalanceChangeResponse(BaseModel):
    """Response for a deposit or withdrawal."""
    new_balance: Money
    transaction: TransactionResponse


class TransactionListResponse(BaseModel):
    """Response for GET /api/wallet/transactions."""
    transactions: list[TransactionResponse]


# ---------------------------------------------------------------------------
# POST /api/wallet/deposit
# ---------------------------------------------------------------------------

@router.post("/deposit", response_model=BalanceChangeResponse)
async def deposit(
    body: AmountRequest,
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> BalanceChangeResponse:
    """Credit the authenticated account.

    Raises:
        HTTPException 400: Amount below the minimum deposit.
        HTTPException 422: Malformed amount.
        HTTPException 503: Ledger store unavailable; nothing was applied.
    """
    change = await gateway.deposit(account_id, body.amount)
    return _balance_change_response(change)


# ---------------------------------------------------------------------------
# POST /api/wallet/withdraw
# ---------------------------------------------------------------------------

@router.post("/withdraw", response_model=BalanceChangeResponse)
async def withdraw(
    body: AmountRequest,
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> BalanceChangeResponse:
    """Debit the authenticated account.

    Raises:
        HTTPException 400: Amount below the minimum, or above the balance.
        HTTPException 422: Malformed amount.
        HTTPException 503: Ledger store unavailable; nothing was applied.
    """
    change = await gateway.withdraw(account_id, body.amount)
    return _balance_change_response(change)


# ---------------------------------------------------------------------------
# GET /api/wallet/transactions
# ---------------------------------------------------------------------------

@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    limit: Optional[int] = Query(None, description="Clamped to 1..50"),
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> TransactionListResponse:
    """Return the most recent transactions, newest first."""
    history = await gateway.list_history(account_id, limit)
    return TransactionListResponse(
        transactions=[
            TransactionResponse.model_validate(t.model_dump(mode="json"))
            for t in history.transactions
        ]
    )

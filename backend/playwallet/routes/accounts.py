"""Account route handlers.

Endpoints:
    POST /api/accounts              -- Open an account and issue its token.
    GET  /api/accounts/me           -- Current account snapshot (account).
    GET  /api/accounts/me/history   -- Recent wagers and transactions (account).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field

from playwallet.auth.dependencies import get_current_account_id
from playwallet.auth.jwt import create_account_token
from playwallet.middleware.rate_limit import rate_limiter
from playwallet.models.account import Account, AccountResponse
from playwallet.models.transaction import TransactionResponse
from playwallet.models.wager import WagerRecordResponse
from playwallet.routes.dependencies import get_gateway
from playwallet.services.account_gateway import AccountGateway

logger = logging.getLogger("playwallet.routes.accounts")

router = APIRouter(prefix="/accounts", tags=["Accounts"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def account_response(account: Account) -> AccountResponse:
    return AccountResponse.model_validate(account.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class OpenAccountRequest(BaseModel):
    """Request body for opening an account."""
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[str] = Field(None, max_length=254)


class OpenAccountResponse(BaseModel):
    """Response for a newly opened account."""
    account: AccountResponse
    access_token: str
    token_type: str = "bearer"


class HistoryResponse(BaseModel):
    """Response for GET /api/accounts/me/history."""
    wagers: list[WagerRecordResponse]
    transactions: list[TransactionResponse]


# ---------------------------------------------------------------------------
# POST /api/accounts
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=OpenAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_account(
    request: Request,
    body: OpenAccountRequest,
    gateway: AccountGateway = Depends(get_gateway),
) -> OpenAccountResponse:
    """Open an account with a zero balance and return its access token.

    Raises:
        HTTPException 409: Username already taken.
        HTTPException 429: Too many registrations from this client.
    """
    rate_limiter.limit_client(request, "account_register")

    account = await gateway.open_account(body.username, body.email)
    logger.info("Opened account %s for username=%s", account.id, account.username)
    return OpenAccountResponse(
        account=account_response(account),
        access_token=create_account_token(account.id),
    )


# ---------------------------------------------------------------------------
# GET /api/accounts/me
# ---------------------------------------------------------------------------

@router.get("/me", response_model=AccountResponse)
async def get_me(
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> AccountResponse:
    """Return the authenticated account's balance and counters."""
    account = await gateway.get_account(account_id)
    return account_response(account)


# ---------------------------------------------------------------------------
# GET /api/accounts/me/history
# ---------------------------------------------------------------------------

@router.get("/me/history", response_model=HistoryResponse)
async def get_history(
    limit: Optional[int] = Query(None, description="Clamped to 1..50"),
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> HistoryResponse:
    """Return the most recent wagers and transactions, newest first."""
    history = await gateway.list_history(account_id, limit)
    return HistoryResponse(
        wagers=[
            WagerRecordResponse.model_validate(w.model_dump(mode="json"))
            for w in history.wagers
        ],
        transactions=[
            TransactionResponse.model_validate(t.model_dump(mode="json"))
            for t in history.transactions
        ],
    )

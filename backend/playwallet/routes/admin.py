"""Admin route handlers.

Endpoints:
    GET /api/admin/commission                        -- House commission report (admin).
    GET /api/admin/accounts/{account_id}/reconcile   -- Balance vs ledger check (admin).
"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from playwallet.auth.dependencies import get_current_admin
from playwallet.models.common import Money
from playwallet.routes.dependencies import get_gateway
from playwallet.services.account_gateway import AccountGateway

logger = logging.getLogger("playwallet.routes.admin")

router = APIRouter(prefix="/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Pydantic response schemas
# ---------------------------------------------------------------------------

class CommissionReportResponse(BaseModel):
    """Response for GET /api/admin/commission."""
    total_commission: Money
    today_commission: Money
    period_commission: Optional[Money] = None
    since: Optional[str] = None
    until: Optional[str] = None
    day_start: str
    generated_at: str


class ReconciliationResponse(BaseModel):
    """Response for GET /api/admin/accounts/{account_id}/reconcile."""
    account_id: str
    balance: Money
    ledger_total: Money
    transaction_count: int
    balanced: bool


# ---------------------------------------------------------------------------
# GET /api/admin/commission
# ---------------------------------------------------------------------------

@router.get("/commission", response_model=CommissionReportResponse)
async def commission_report(
    since: Optional[datetime] = Query(None, description="Period start (inclusive)"),
    until: Optional[datetime] = Query(None, description="Period end (exclusive)"),
    admin: dict[str, Any] = Depends(get_current_admin),
    gateway: AccountGateway = Depends(get_gateway),
) -> CommissionReportResponse:
    """Total, today's and (optionally) a period's house commission.

    Raises:
        HTTPException 422: ``since`` is not before ``until``.
        HTTPException 503: Ledger store unavailable.
    """
    report = await gateway.commission_report(since=since, until=until)
    logger.info(
        "Commission report for %s: total=%s today=%s",
        admin["username"],
        report.total_commission,
        report.today_commission,
    )
    return CommissionReportResponse(
        total_commission=report.total_commission,
        today_commission=report.today_commission,
        period_commission=report.period_commission,
        since=report.since.isoformat() if report.since else None,
        until=report.until.isoformat() if report.until else None,
        day_start=report.day_start.isoformat(),
        generated_at=report.generated_at.isoformat(),
    )


# ---------------------------------------------------------------------------
# GET /api/admin/accounts/{account_id}/reconcile
# ---------------------------------------------------------------------------

@router.get(
    "/accounts/{account_id}/reconcile",
    response_model=ReconciliationResponse,
)
async def reconcile_account(
    account_id: str = Path(..., description="Account to check"),
    admin: dict[str, Any] = Depends(get_current_admin),
    gateway: AccountGateway = Depends(get_gateway),
) -> ReconciliationResponse:
    """Compare an account's balance with the sum of its transactions.

    Raises:
        HTTPException 404: Account not found.
    """
    reconciliation = await gateway.reconcile(account_id)
    return ReconciliationResponse(
        account_id=reconciliation.account_id,
        balance=reconciliation.balance,
        ledger_total=reconciliation.ledger_total,
        transaction_count=reconciliation.transaction_count,
        balanced=reconciliation.balanced,
    )

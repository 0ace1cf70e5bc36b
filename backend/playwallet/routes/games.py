"""Game route handlers.

Endpoints:
    GET  /api/games           -- Catalogue of supported game variants.
    POST /api/games/play      -- Stake a bet and settle one play (account).
    GET  /api/games/history   -- Recent wagers (account).
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from playwallet.auth.dependencies import get_current_account_id
from playwallet.config import settings
from playwallet.middleware.rate_limit import rate_limiter
from playwallet.models.common import Money, WagerOutcome
from playwallet.models.game import GameInfo, game_catalogue
from playwallet.models.wager import WagerRecordResponse
from playwallet.routes.dependencies import get_gateway
from playwallet.services.account_gateway import AccountGateway

logger = logging.getLogger("playwallet.routes.games")

router = APIRouter(prefix="/games", tags=["Games"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class CatalogueResponse(BaseModel):
    """Response for GET /api/games."""
    games: list[GameInfo]


class PlayRequest(BaseModel):
    """Request body for a play.

    ``bet_amount``, ``game_type`` and ``params`` are validated by the
    gateway so failures carry stable error codes.
    """
    game_type: Any = Field(..., description="coin_flip, number_guess or lucky_wheel")
    bet_amount: Any = Field(..., description="Stake in currency units")
    params: dict[str, Any] = Field(default_factory=dict)


class PlayResponse(BaseModel):
    """Response for a settled play."""
    outcome: WagerOutcome
    win_amount: Money
    commission: Money
    draw: Any
    new_balance: Money
    wager: WagerRecordResponse


class WagerListResponse(BaseModel):
    """Response for GET /api/games/history."""
    wagers: list[WagerRecordResponse]


# ---------------------------------------------------------------------------
# GET /api/games
# ---------------------------------------------------------------------------

@router.get("", response_model=CatalogueResponse)
async def list_games() -> CatalogueResponse:
    """Describe every supported game variant and its payouts."""
    return CatalogueResponse(games=game_catalogue(settings.MIN_BET))


# ---------------------------------------------------------------------------
# POST /api/games/play
# ---------------------------------------------------------------------------

@router.post("/play", response_model=PlayResponse)
async def play(
    body: PlayRequest,
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> PlayResponse:
    """Stake ``bet_amount`` on one play and return the settled result.

    Raises:
        HTTPException 400: Bet below minimum, insufficient balance, or
            unsupported game type.
        HTTPException 422: Malformed bet amount or game parameters.
        HTTPException 429: Too many plays from this account.
        HTTPException 503: Ledger store unavailable; nothing was applied.
    """
    rate_limiter.limit_account(account_id, "game_play")

    result = await gateway.play_game(
        account_id, body.game_type, body.bet_amount, body.params
    )
    return PlayResponse(
        outcome=result.outcome,
        win_amount=result.win_amount,
        commission=result.commission,
        draw=result.draw,
        new_balance=result.new_balance,
        wager=WagerRecordResponse.model_validate(result.wager.model_dump(mode="json")),
    )


# ---------------------------------------------------------------------------
# GET /api/games/history
# ---------------------------------------------------------------------------

@router.get("/history", response_model=WagerListResponse)
async def list_wagers(
    limit: Optional[int] = Query(None, description="Clamped to 1..50"),
    account_id: str = Depends(get_current_account_id),
    gateway: AccountGateway = Depends(get_gateway),
) -> WagerListResponse:
    """Return the most recent wagers, newest first."""
    history = await gateway.list_history(account_id, limit)
    return WagerListResponse(
        wagers=[
            WagerRecordResponse.model_validate(w.model_dump(mode="json"))
            for w in history.wagers
        ]
    )

"""WagerRecord domain model for PlayWallet.

Based on the wagers collection: one immutable document per settled play.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer, model_validator

from playwallet.models.common import (
    GameVariant,
    Money,
    PyObjectId,
    WagerOutcome,
)

COMMISSION_RATE = Decimal("0.5")


def commission_for(
    outcome: WagerOutcome, bet_amount: Decimal, win_amount: Decimal
) -> Decimal:
    """House commission: half of whichever side profited.

    Half the winnings on a win, half the forfeited stake on a loss. This is
    a reporting figure; it is never deducted from the account.
    """
    base = win_amount if outcome == WagerOutcome.WIN else bet_amount
    return base * COMMISSION_RATE


class WagerRecord(BaseModel):
    """Represents a single settled play."""

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    account_id: str
    variant: GameVariant
    bet_amount: Money = Field(gt=0)
    win_amount: Money = Decimal("0.00")
    outcome: WagerOutcome
    commission: Money
    game_data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @model_validator(mode="after")
    def validate_amounts(self) -> "WagerRecord":
        """Losses pay nothing, and commission follows the house formula."""
        if self.outcome == WagerOutcome.LOSS and self.win_amount != 0:
            raise ValueError("win_amount must be 0 for a lost wager")
        expected = commission_for(self.outcome, self.bet_amount, self.win_amount)
        if self.commission != expected:
            raise ValueError(
                f"commission {self.commission} does not match expected {expected}"
            )
        return self

    @field_serializer("id")
    def serialize_id(self, value: Optional[str], _info) -> Optional[str]:
        if value is not None:
            return str(value)
        return value

    @field_serializer("created_at")
    def serialize_datetime(self, value: datetime, _info) -> str:
        return value.isoformat()

    def to_mongo_dict(self) -> dict:
        """Convert model to a MongoDB-insertable dict, excluding None id."""
        data = self.model_dump(by_alias=True, mode="python")
        if data.get("_id") is None:
            data.pop("_id", None)
        return data


class WagerRecordResponse(BaseModel):
    """Response model for WagerRecord data returned via API."""

    id: str
    account_id: str
    variant: GameVariant
    bet_amount: Money
    win_amount: Money
    outcome: WagerOutcome
    commission: Money
    game_data: dict[str, Any]
    created_at: str

"""Account domain model for PlayWallet.

Based on the accounts collection: one document per ledgered identity.
The balance and aggregate counters only change through the settlement
engine, which bumps ``version`` on every write.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from playwallet.models.common import Money, PyObjectId


class Account(BaseModel):
    """Represents an account holding a monetary balance."""

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    username: str
    email: Optional[str] = None
    balance: Money = Field(default=Decimal("0.00"), ge=0)
    cumulative_deposits: Money = Decimal("0.00")
    cumulative_winnings: Money = Decimal("0.00")
    games_played: int = Field(default=0, ge=0)
    version: int = 0
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = None

    @field_serializer("id")
    def serialize_id(self, value: Optional[str], _info) -> Optional[str]:
        if value is not None:
            return str(value)
        return value

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(
        self, value: Optional[datetime], _info
    ) -> Optional[str]:
        if value is None:
            return None
        return value.isoformat()

    def to_mongo_dict(self) -> dict:
        """Convert model to a MongoDB-insertable dict, excluding None id."""
        data = self.model_dump(by_alias=True, mode="python")
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    def ledger_fields(self) -> dict:
        """The mutable ledger fields, serialized for a ``$set`` update."""
        return self.model_dump(
            mode="python",
            include={
                "balance",
                "cumulative_deposits",
                "cumulative_winnings",
                "games_played",
                "updated_at",
            },
        )


class AccountResponse(BaseModel):
    """Response model for Account data returned via API."""

    id: str
    username: str
    email: Optional[str] = None
    balance: Money
    cumulative_deposits: Money
    cumulative_winnings: Money
    games_played: int
    created_at: str

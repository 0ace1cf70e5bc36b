"""Transaction domain model for PlayWallet.

Based on the transactions collection: an immutable audit entry per
settled money movement. The signed ``amount`` is the exact change the
operation applied to the account balance.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from playwallet.models.common import (
    Money,
    PyObjectId,
    TransactionKind,
    TransactionStatus,
)


class Transaction(BaseModel):
    """Represents one ledger entry for an account."""

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    account_id: str
    kind: TransactionKind
    amount: Money
    description: str = ""
    status: TransactionStatus = TransactionStatus.COMPLETED
    wager_id: Optional[str] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

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


class TransactionResponse(BaseModel):
    """Response model for Transaction data returned via API."""

    id: str
    account_id: str
    kind: TransactionKind
    amount: Money
    description: str
    status: TransactionStatus
    wager_id: Optional[str] = None
    created_at: str

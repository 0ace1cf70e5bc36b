"""Wager Data Access Layer -- MongoDB operations for the wagers collection.

Wager records are append-only and feed both the per-account game history
and the house commission report.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import TypeAdapter

from playwallet.models.common import Money
from playwallet.models.wager import WagerRecord

logger = logging.getLogger("playwallet.dal.wagers")

COLLECTION = "wagers"

_MONEY_ADAPTER = TypeAdapter(Money)


class WagerDAL:
    """Data access layer for the wagers collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    async def create(self, wager: WagerRecord) -> WagerRecord:
        """Append a wager record, keeping a preassigned id if it has one."""
        doc = wager.to_mongo_dict()
        if "_id" in doc:
            doc["_id"] = ObjectId(doc["_id"])
        result = await self._collection.insert_one(doc)
        wager.id = str(result.inserted_id)
        logger.info(
            "Recorded %s wager %s for account=%s (bet=%s, win=%s, commission=%s)",
            wager.variant,
            wager.id,
            wager.account_id,
            wager.bet_amount,
            wager.win_amount,
            wager.commission,
        )
        return wager

    async def get_by_account(
        self, account_id: str, limit: int = 50
    ) -> list[WagerRecord]:
        """Get an account's most recent wagers, newest first.

        Uses the ``idx_account_created`` index; ``_id`` breaks timestamp ties.
        """
        cursor = (
            self._collection.find({"account_id": account_id})
            .sort([("created_at", -1), ("_id", -1)])
            .limit(limit)
        )
        wagers: list[WagerRecord] = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            wagers.append(WagerRecord(**doc))
        return wagers

    async def sum_commission(
        self,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Decimal:
        """Sum the commission of every wager created in ``[since, until)``.

        Timestamps are stored as UTC ISO-8601 strings, so the bounds are
        compared in the same representation. The sum is taken client-side
        to keep exact Decimal arithmetic.
        """
        query: dict[str, Any] = {}
        created: dict[str, str] = {}
        if since is not None:
            created["$gte"] = since.astimezone(timezone.utc).isoformat()
        if until is not None:
            created["$lt"] = until.astimezone(timezone.utc).isoformat()
        if created:
            query["created_at"] = created

        total = Decimal("0")
        cursor = self._collection.find(query, {"commission": 1})
        async for doc in cursor:
            total += _MONEY_ADAPTER.validate_python(doc["commission"])
        return total

    async def delete(self, wager_id: str) -> bool:
        """Remove a wager whose settlement was rolled back."""
        if not ObjectId.is_valid(wager_id):
            return False
        result = await self._collection.delete_one({"_id": ObjectId(wager_id)})
        if result.deleted_count > 0:
            logger.warning("Withdrew wager %s after rollback", wager_id)
        return result.deleted_count > 0

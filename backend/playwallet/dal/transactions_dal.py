"""Transaction Data Access Layer -- MongoDB operations for the transactions collection.

Transactions are append-only. ``delete`` exists solely so the settlement
engine can withdraw an entry whose account update was rolled back.
"""

import logging

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from playwallet.models.transaction import Transaction

logger = logging.getLogger("playwallet.dal.transactions")

COLLECTION = "transactions"


class TransactionDAL:
    """Data access layer for the transactions collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    async def create(self, transaction: Transaction) -> Transaction:
        """Append a transaction, keeping a preassigned id if it has one."""
        doc = transaction.to_mongo_dict()
        if "_id" in doc:
            doc["_id"] = ObjectId(doc["_id"])
        result = await self._collection.insert_one(doc)
        transaction.id = str(result.inserted_id)
        logger.info(
            "Recorded %s transaction %s for account=%s (amount=%s)",
            transaction.kind,
            transaction.id,
            transaction.account_id,
            transaction.amount,
        )
        return transaction

    async def get_by_account(
        self, account_id: str, limit: int = 50
    ) -> list[Transaction]:
        """Get an account's most recent transactions, newest first.

        Uses the ``idx_account_created`` index; ``_id`` breaks timestamp ties.
        """
        cursor = (
            self._collection.find({"account_id": account_id})
            .sort([("created_at", -1), ("_id", -1)])
            .limit(limit)
        )
        transactions: list[Transaction] = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            transactions.append(Transaction(**doc))
        return transactions

    async def get_all_by_account(self, account_id: str) -> list[Transaction]:
        """Every transaction of an account, oldest first (statement/audit)."""
        cursor = self._collection.find({"account_id": account_id}).sort(
            [("created_at", 1), ("_id", 1)]
        )
        transactions: list[Transaction] = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            transactions.append(Transaction(**doc))
        return transactions

    async def delete(self, transaction_id: str) -> bool:
        """Remove a transaction whose settlement was rolled back."""
        if not ObjectId.is_valid(transaction_id):
            return False
        result = await self._collection.delete_one({"_id": ObjectId(transaction_id)})
        if result.deleted_count > 0:
            logger.warning("Withdrew transaction %s after rollback", transaction_id)
        return result.deleted_count > 0

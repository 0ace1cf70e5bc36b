"""Account Data Access Layer -- MongoDB operations for the accounts collection.

Balance writes are compare-and-set on the ``version`` field: an update only
applies when the stored version still matches the snapshot the caller read,
so two writers can never interleave a read-modify-write on one account.
"""

import logging
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from playwallet.models.account import Account

logger = logging.getLogger("playwallet.dal.accounts")

COLLECTION = "accounts"


class AccountDAL:
    """Data access layer for the accounts collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, account: Account) -> Account:
        """Insert a new account document and return it with its generated id.

        Raises:
            pymongo.errors.DuplicateKeyError: The username is taken.
        """
        doc = account.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        account.id = str(result.inserted_id)
        logger.info("Created account %s (username=%s)", account.id, account.username)
        return account

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """Find an account by its MongoDB ``_id``.

        Args:
            account_id: String representation of the ObjectId.

        Returns:
            An Account instance, or None if not found.
        """
        if not ObjectId.is_valid(account_id):
            return None
        doc = await self._collection.find_one({"_id": ObjectId(account_id)})
        if doc is None:
            return None
        doc["_id"] = str(doc["_id"])
        return Account(**doc)

    async def get_by_username(self, username: str) -> Optional[Account]:
        """Find an account by its unique username."""
        doc = await self._collection.find_one({"username": username})
        if doc is None:
            return None
        doc["_id"] = str(doc["_id"])
        return Account(**doc)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def compare_and_set(
        self, account_id: str, expected_version: int, fields: dict
    ) -> Optional[Account]:
        """Apply ``fields`` only if the stored version equals ``expected_version``.

        The version is incremented in the same single-document update, so the
        whole set of ledger fields changes atomically.

        Args:
            account_id: String representation of the account's ObjectId.
            expected_version: The version of the snapshot the caller read.
            fields: A dict of field names to new values.

        Returns:
            The updated Account, or None if the version no longer matched
            (or the account does not exist).
        """
        if not ObjectId.is_valid(account_id):
            return None
        doc = await self._collection.find_one_and_update(
            {"_id": ObjectId(account_id), "version": expected_version},
            {"$set": fields, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            logger.warning(
                "Version conflict on account %s (expected version=%d)",
                account_id,
                expected_version,
            )
            return None
        doc["_id"] = str(doc["_id"])
        return Account(**doc)

"""MongoDB database connection management using Motor async driver.

Includes connection lifecycle and index management for the accounts,
transactions and wagers collections.
"""

import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from playwallet.config import settings

logger = logging.getLogger("playwallet.dal.database")

# Global database client and database instances
_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None


async def connect_to_mongo() -> None:
    """Establish connection to MongoDB.

    Called during FastAPI application startup. Every store call is bounded
    by ``STORE_TIMEOUT_MS`` so a stalled server surfaces as a retryable
    error instead of hanging a request.
    """
    global _client, _database

    _client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=settings.STORE_TIMEOUT_MS,
        connectTimeoutMS=settings.STORE_TIMEOUT_MS,
        socketTimeoutMS=settings.STORE_TIMEOUT_MS,
    )
    _database = _client[settings.DATABASE_NAME]

    # Verify connection by pinging the database
    await _client.admin.command("ping")
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)


async def close_mongo_connection() -> None:
    """Close MongoDB connection.

    Called during FastAPI application shutdown.
    """
    global _client

    if _client:
        _client.close()
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get the MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: The database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() first."
        )
    return _database


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes used by the ledger queries.

    This is idempotent -- MongoDB silently ignores indexes that already exist.

    Args:
        db: The Motor database instance to create indexes on.
    """
    logger.info("Ensuring indexes for all collections...")

    # --- accounts indexes ---
    await db.accounts.create_index(
        [("username", ASCENDING)],
        unique=True,
        name="uq_username",
    )

    # --- transactions indexes ---
    # Account statement, newest first.
    await db.transactions.create_index(
        [("account_id", ASCENDING), ("created_at", DESCENDING)],
        name="idx_account_created",
    )

    # --- wagers indexes ---
    # Game history, newest first.
    await db.wagers.create_index(
        [("account_id", ASCENDING), ("created_at", DESCENDING)],
        name="idx_account_created",
    )

    # Commission report date cutoffs.
    await db.wagers.create_index(
        [("created_at", ASCENDING)],
        name="idx_created",
    )

    logger.info("All indexes ensured successfully.")

"""
Pytest configuration and fixtures for PlayWallet tests.

This module provides shared fixtures for testing async FastAPI endpoints
and MongoDB interactions using mongomock-motor (no real MongoDB required).
"""

import os

# Set required env vars before any app imports
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")
# Disable rate limiting in tests
os.environ["TESTING"] = "1"

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from playwallet.dal.accounts_dal import AccountDAL
from playwallet.dal.database import ensure_indexes
from playwallet.dal.transactions_dal import TransactionDAL
from playwallet.dal.wagers_dal import WagerDAL
from playwallet.services.account_locks import AccountLockRegistry
from playwallet.services.outcome_resolver import OutcomeResolver
from playwallet.services.settlement_engine import SettlementEngine


class ScriptedRandom:
    """Random source that replays a fixed sequence of draws."""

    def __init__(self, *draws):
        self.draws = list(draws)

    def push(self, *draws):
        self.draws.extend(draws)

    def choice(self, seq):
        return self.draws.pop(0)

    def randint(self, a, b):
        return self.draws.pop(0)


@pytest.fixture
def anyio_backend():
    """Specify anyio backend for async tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_db():
    """In-memory MongoDB mock database for unit tests.

    Uses mongomock-motor so no real MongoDB instance is needed.
    The database is ephemeral -- it disappears after each test.

    Yields:
        An AsyncIOMotorDatabase-compatible mock database instance.
    """
    client = AsyncMongoMockClient()
    db = client["playwallet_test"]
    await ensure_indexes(db)
    yield db
    client.close()


@pytest_asyncio.fixture
async def account_dal(test_db) -> AccountDAL:
    return AccountDAL(test_db)


@pytest_asyncio.fixture
async def transaction_dal(test_db) -> TransactionDAL:
    return TransactionDAL(test_db)


@pytest_asyncio.fixture
async def wager_dal(test_db) -> WagerDAL:
    return WagerDAL(test_db)


@pytest.fixture
def rng() -> ScriptedRandom:
    """Scripted draws; push the outcomes a test needs before playing."""
    return ScriptedRandom()


@pytest.fixture
def locks() -> AccountLockRegistry:
    return AccountLockRegistry()


@pytest_asyncio.fixture
async def engine(account_dal, transaction_dal, wager_dal, rng, locks) -> SettlementEngine:
    return SettlementEngine(
        account_dal,
        transaction_dal,
        wager_dal,
        resolver=OutcomeResolver(rng),
        locks=locks,
    )


@pytest_asyncio.fixture
async def client():
    """Async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient: HTTPX async client with the FastAPI app.
    """
    from httpx import ASGITransport, AsyncClient
    from playwallet.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

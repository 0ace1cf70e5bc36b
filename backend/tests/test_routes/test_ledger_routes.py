"""Integration tests for the account, wallet, game and admin routes.

Tests the full HTTP stack using HTTPX AsyncClient with the FastAPI app
and mongomock-motor (no real MongoDB required).
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ServerSelectionTimeoutError

from playwallet.auth.jwt import create_access_token
from playwallet.config import settings
from playwallet.dal.accounts_dal import AccountDAL
from playwallet.dal.database import ensure_indexes
from playwallet.models.common import CoinSide
from playwallet.routes import dependencies as route_dependencies
from playwallet.services.outcome_resolver import OutcomeResolver


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def mock_db(monkeypatch, rng):
    """Provide an in-memory mock MongoDB database behind the gateway dependency."""
    client = AsyncMongoMockClient()
    db = client["playwallet_test"]
    await ensure_indexes(db)

    monkeypatch.setattr(route_dependencies, "get_database", lambda: db)
    monkeypatch.setattr(route_dependencies, "resolver", OutcomeResolver(rng))

    yield db
    client.close()


@pytest_asyncio.fixture
async def test_client(mock_db):
    """Async HTTP client wired to the FastAPI app with mocked db."""
    from playwallet.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict:
    token = create_access_token(data={"sub": settings.ADMIN_USERNAME, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


async def _register(test_client: AsyncClient, username: str = "alice") -> dict:
    """Helper to open an account and return auth headers plus the account."""
    resp = await test_client.post("/api/accounts", json={"username": username})
    assert resp.status_code == 201
    data = resp.json()
    return {
        "account": data["account"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


async def _funded(test_client: AsyncClient, amount=100) -> dict:
    user = await _register(test_client)
    resp = await test_client.post(
        "/api/wallet/deposit", json={"amount": amount}, headers=user["headers"]
    )
    assert resp.status_code == 200
    return user


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestAccountRoutes:

    async def test_register_returns_token_and_zero_balance(self, test_client):
        resp = await test_client.post(
            "/api/accounts", json={"username": "alice", "email": "a@example.com"}
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["token_type"] == "bearer"
        assert data["account"]["username"] == "alice"
        assert data["account"]["balance"] == 0.0
        assert data["account"]["games_played"] == 0

    async def test_register_duplicate(self, test_client):
        await _register(test_client)
        resp = await test_client.post("/api/accounts", json={"username": "alice"})
        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "ACCOUNT_EXISTS"

    async def test_register_short_username(self, test_client):
        resp = await test_client.post("/api/accounts", json={"username": "al"})
        assert resp.status_code == 422

    async def test_me(self, test_client):
        user = await _register(test_client)
        resp = await test_client.get("/api/accounts/me", headers=user["headers"])
        assert resp.status_code == 200
        assert resp.json()["id"] == user["account"]["id"]

    async def test_me_requires_token(self, test_client):
        resp = await test_client.get("/api/accounts/me")
        assert resp.status_code == 401

    async def test_me_rejects_admin_token(self, test_client, admin_headers):
        resp = await test_client.get("/api/accounts/me", headers=admin_headers)
        assert resp.status_code == 403

    async def test_me_rejects_garbage_token(self, test_client):
        resp = await test_client.get(
            "/api/accounts/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 401

    async def test_store_unavailable_is_503(self, test_client, monkeypatch):
        user = await _register(test_client)

        async def unreachable(self, account_id):
            raise ServerSelectionTimeoutError("no servers")

        monkeypatch.setattr(AccountDAL, "get_by_id", unreachable)
        resp = await test_client.get("/api/accounts/me", headers=user["headers"])
        assert resp.status_code == 503
        assert resp.headers["retry-after"] == "1"
        assert resp.json()["detail"]["code"] == "STORE_UNAVAILABLE"

    async def test_history(self, test_client, rng):
        user = await _funded(test_client)
        rng.push(1, 1)
        for _ in range(2):
            await test_client.post(
                "/api/games/play",
                json={"game_type": "lucky_wheel", "bet_amount": 10},
                headers=user["headers"],
            )

        resp = await test_client.get(
            "/api/accounts/me/history", params={"limit": 2}, headers=user["headers"]
        )
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["wagers"]) == 2
        assert len(data["transactions"]) == 2
        assert [t["kind"] for t in data["transactions"]] == ["game_loss", "game_loss"]


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestWalletRoutes:

    async def test_deposit_below_minimum(self, test_client):
        user = await _register(test_client)
        resp = await test_client.post(
            "/api/wallet/deposit", json={"amount": 50}, headers=user["headers"]
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "BELOW_MINIMUM"

        resp = await test_client.get("/api/accounts/me", headers=user["headers"])
        assert resp.json()["balance"] == 0.0

    async def test_deposit(self, test_client):
        user = await _register(test_client)
        resp = await test_client.post(
            "/api/wallet/deposit", json={"amount": "100.00"}, headers=user["headers"]
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["new_balance"] == 100.0
        assert data["transaction"]["kind"] == "deposit"
        assert data["transaction"]["amount"] == 100.0
        assert data["transaction"]["status"] == "completed"

    @pytest.mark.parametrize("amount", ["abc", None, True, 100.005, "1e400"])
    async def test_deposit_invalid_amount(self, test_client, amount):
        user = await _register(test_client)
        resp = await test_client.post(
            "/api/wallet/deposit", json={"amount": amount}, headers=user["headers"]
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "INVALID_AMOUNT"

    async def test_withdraw(self, test_client):
        user = await _funded(test_client)
        resp = await test_client.post(
            "/api/wallet/withdraw", json={"amount": 60}, headers=user["headers"]
        )
        assert resp.status_code == 200
        assert resp.json()["new_balance"] == 40.0
        assert resp.json()["transaction"]["amount"] == -60.0

    async def test_withdraw_insufficient(self, test_client):
        user = await _funded(test_client)
        resp = await test_client.post(
            "/api/wallet/withdraw", json={"amount": 150}, headers=user["headers"]
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "INSUFFICIENT_BALANCE"

    async def test_transactions(self, test_client):
        user = await _funded(test_client)
        await test_client.post(
            "/api/wallet/withdraw", json={"amount": 50}, headers=user["headers"]
        )
        resp = await test_client.get("/api/wallet/transactions", headers=user["headers"])
        assert resp.status_code == 200
        kinds = [t["kind"] for t in resp.json()["transactions"]]
        assert kinds == ["withdrawal", "deposit"]


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestGameRoutes:

    async def test_catalogue(self, test_client):
        resp = await test_client.get("/api/games")
        assert resp.status_code == 200
        variants = [g["variant"] for g in resp.json()["games"]]
        assert variants == ["coin_flip", "number_guess", "lucky_wheel"]

    async def test_play_win(self, test_client, rng):
        user = await _funded(test_client)
        rng.push(CoinSide.HEADS)
        resp = await test_client.post(
            "/api/games/play",
            json={"game_type": "coin_flip", "bet_amount": 100, "params": {"choice": "heads"}},
            headers=user["headers"],
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["outcome"] == "win"
        assert data["win_amount"] == 180.0
        assert data["commission"] == 90.0
        assert data["draw"] == "heads"
        assert data["new_balance"] == 280.0
        assert data["wager"]["game_data"] == {"choice": "heads", "draw": "heads"}

    async def test_play_loss(self, test_client, rng):
        user = await _funded(test_client)
        rng.push(CoinSide.TAILS)
        resp = await test_client.post(
            "/api/games/play",
            json={"game_type": "coin_flip", "bet_amount": 100, "params": {"choice": "heads"}},
            headers=user["headers"],
        )
        data = resp.json()
        assert data["outcome"] == "loss"
        assert data["win_amount"] == 0.0
        assert data["commission"] == 50.0
        assert data["new_balance"] == 0.0

    async def test_play_unknown_game(self, test_client):
        user = await _funded(test_client)
        resp = await test_client.post(
            "/api/games/play",
            json={"game_type": "roulette", "bet_amount": 10},
            headers=user["headers"],
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "INVALID_GAME_VARIANT"

    async def test_play_bad_params(self, test_client):
        user = await _funded(test_client)
        resp = await test_client.post(
            "/api/games/play",
            json={"game_type": "number_guess", "bet_amount": 10, "params": {"guess": 42}},
            headers=user["headers"],
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "INVALID_GAME_PARAMS"

    async def test_play_below_minimum(self, test_client):
        user = await _funded(test_client)
        resp = await test_client.post(
            "/api/games/play",
            json={"game_type": "lucky_wheel", "bet_amount": 5},
            headers=user["headers"],
        )
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "BELOW_MINIMUM"

    async def test_play_requires_token(self, test_client):
        resp = await test_client.post(
            "/api/games/play", json={"game_type": "lucky_wheel", "bet_amount": 10}
        )
        assert resp.status_code == 401

    async def test_wager_history(self, test_client, rng):
        user = await _funded(test_client)
        rng.push(4)
        await test_client.post(
            "/api/games/play",
            json={"game_type": "number_guess", "bet_amount": 10, "params": {"guess": 4}},
            headers=user["headers"],
        )
        resp = await test_client.get("/api/games/history", headers=user["headers"])
        assert resp.status_code == 200
        wagers = resp.json()["wagers"]
        assert len(wagers) == 1
        assert wagers[0]["win_amount"] == 90.0


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestAdminRoutes:

    async def test_login(self, test_client):
        resp = await test_client.post(
            "/api/auth/admin/login",
            json={"username": settings.ADMIN_USERNAME, "password": settings.ADMIN_PASSWORD},
        )
        assert resp.status_code == 200
        assert resp.json()["token_type"] == "bearer"

    async def test_login_wrong_password(self, test_client):
        resp = await test_client.post(
            "/api/auth/admin/login",
            json={"username": settings.ADMIN_USERNAME, "password": "wrong"},
        )
        assert resp.status_code == 401

    async def test_commission_requires_admin(self, test_client):
        user = await _register(test_client)
        assert (await test_client.get("/api/admin/commission")).status_code == 401
        resp = await test_client.get("/api/admin/commission", headers=user["headers"])
        assert resp.status_code == 403

    async def test_commission_report(self, test_client, rng, admin_headers):
        user = await _funded(test_client)
        rng.push(CoinSide.HEADS, CoinSide.TAILS)
        for _ in range(2):
            await test_client.post(
                "/api/games/play",
                json={"game_type": "coin_flip", "bet_amount": 10, "params": {"choice": "heads"}},
                headers=user["headers"],
            )

        resp = await test_client.get("/api/admin/commission", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_commission"] == 14.0
        assert data["today_commission"] == 14.0
        assert data["period_commission"] is None

        resp = await test_client.get(
            "/api/admin/commission",
            params={"since": "2000-01-01T00:00:00Z", "until": "2000-01-02T00:00:00Z"},
            headers=admin_headers,
        )
        assert resp.json()["period_commission"] == 0.0

    async def test_reconcile(self, test_client, rng, admin_headers):
        user = await _funded(test_client)
        rng.push(3)
        await test_client.post(
            "/api/games/play",
            json={"game_type": "lucky_wheel", "bet_amount": 10},
            headers=user["headers"],
        )
        resp = await test_client.get(
            f"/api/admin/accounts/{user['account']['id']}/reconcile",
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["balanced"] is True
        assert data["balance"] == 120.0
        assert data["transaction_count"] == 2


# ---------------------------------------------------------------------------
# Gateway wiring
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestGatewayDependency:

    async def test_every_ledger_route_resolves_the_shared_gateway(
        self, test_client, admin_headers
    ):
        from playwallet.main import app

        built = []

        def tracking_gateway():
            gateway = route_dependencies.get_gateway()
            built.append(gateway)
            return gateway

        app.dependency_overrides[route_dependencies.get_gateway] = tracking_gateway
        try:
            user = await _funded(test_client)
            resp = await test_client.get("/api/games/history", headers=user["headers"])
            assert resp.status_code == 200
            resp = await test_client.get("/api/admin/commission", headers=admin_headers)
            assert resp.status_code == 200
        finally:
            app.dependency_overrides.clear()

        # register, deposit, wager history, commission report
        assert len(built) == 4

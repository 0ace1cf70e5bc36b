"""Tests for the per-client and per-account request quotas."""

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from playwallet.middleware.rate_limit import QUOTAS, LedgerRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _request(ip: str = "10.0.0.1") -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/",
            "headers": [],
            "client": (ip, 1234),
        }
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> LedgerRateLimiter:
    return LedgerRateLimiter(clock=clock)


@pytest.fixture
def enforced(monkeypatch):
    monkeypatch.setenv("TESTING", "0")


class TestHit:

    def test_refuses_once_quota_is_spent(self, limiter):
        quota = QUOTAS["admin_login"]
        for _ in range(quota.limit):
            assert limiter.hit("admin_login", "10.0.0.1") is None
        assert limiter.hit("admin_login", "10.0.0.1") == quota.window_seconds + 1

    def test_window_slides(self, limiter, clock):
        quota = QUOTAS["game_play"]
        for _ in range(quota.limit):
            limiter.hit("game_play", "acc-1")
        clock.now += quota.window_seconds - 10
        assert limiter.hit("game_play", "acc-1") == 11

        clock.now += 10
        assert limiter.hit("game_play", "acc-1") is None

    def test_refused_hits_are_not_counted(self, limiter, clock):
        quota = QUOTAS["admin_login"]
        for _ in range(quota.limit):
            limiter.hit("admin_login", "10.0.0.1")
        for _ in range(10):
            limiter.hit("admin_login", "10.0.0.1")
        clock.now += quota.window_seconds
        assert limiter.hit("admin_login", "10.0.0.1") is None

    def test_quotas_are_independent(self, limiter):
        for _ in range(QUOTAS["admin_login"].limit):
            limiter.hit("admin_login", "10.0.0.1")
        assert limiter.hit("account_register", "10.0.0.1") is None

    def test_unknown_quota(self, limiter):
        with pytest.raises(KeyError):
            limiter.hit("nope", "10.0.0.1")


class TestEnforcement:

    def test_client_limit_raises_429(self, limiter, enforced):
        for _ in range(QUOTAS["account_register"].limit):
            limiter.limit_client(_request(), "account_register")
        with pytest.raises(HTTPException) as exc_info:
            limiter.limit_client(_request(), "account_register")
        assert exc_info.value.status_code == 429
        assert exc_info.value.detail["code"] == "RATE_LIMIT_EXCEEDED"
        assert exc_info.value.headers["Retry-After"] == str(
            exc_info.value.detail["retry_after"]
        )

    def test_clients_have_separate_quotas(self, limiter, enforced):
        for _ in range(QUOTAS["account_register"].limit):
            limiter.limit_client(_request("10.0.0.1"), "account_register")
        limiter.limit_client(_request("10.0.0.2"), "account_register")

    def test_plays_are_limited_per_account_not_per_address(self, limiter, enforced):
        for _ in range(QUOTAS["game_play"].limit):
            limiter.limit_account("acc-1", "game_play")
        limiter.limit_account("acc-2", "game_play")
        with pytest.raises(HTTPException):
            limiter.limit_account("acc-1", "game_play")

    def test_disabled_in_tests(self, limiter):
        for _ in range(QUOTAS["admin_login"].limit + 5):
            limiter.limit_client(_request(), "admin_login")

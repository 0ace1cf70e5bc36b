"""Request quotas for the PlayWallet API.

Anonymous entry points (admin login, account registration) are limited per
client address. Plays are limited per verified account, so one account
cannot flood the ledger from many addresses and accounts behind one
address do not starve each other.

Behind a reverse proxy, run uvicorn with ``--proxy-headers`` so the client
address is the forwarded one.
"""

import logging
import os
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional

from fastapi import HTTPException, Request, status

logger = logging.getLogger("playwallet.middleware.rate_limit")


@dataclass(frozen=True)
class Quota:
    """At most ``limit`` hits per ``window_seconds`` sliding window."""

    limit: int
    window_seconds: float


QUOTAS: dict[str, Quota] = {
    "admin_login": Quota(limit=5, window_seconds=15 * 60),
    "account_register": Quota(limit=5, window_seconds=60 * 60),
    "game_play": Quota(limit=60, window_seconds=60),
}


def _quotas_disabled() -> bool:
    return os.getenv("TESTING", "").lower() in ("1", "true", "yes")


class LedgerRateLimiter:
    """Sliding window counters keyed by quota name and subject."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._hits: dict[tuple[str, str], deque[float]] = {}
        self._lock = Lock()
        self._clock = clock

    def hit(self, name: str, subject: str) -> Optional[int]:
        """Count one hit for ``subject`` against quota ``name``.

        Returns:
            None if the hit is within quota, otherwise the seconds until the
            oldest hit leaves the window. A refused hit is not counted.

        Raises:
            KeyError: Unknown quota name.
        """
        quota = QUOTAS[name]
        now = self._clock()
        key = (name, subject)
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - quota.window_seconds:
                hits.popleft()
            if len(hits) >= quota.limit:
                return max(1, int(hits[0] + quota.window_seconds - now) + 1)
            hits.append(now)
            return None

    def limit_client(self, request: Request, name: str) -> None:
        """Enforce quota ``name`` for the request's client address."""
        client = request.client.host if request.client else "unknown"
        self._enforce(name, client)

    def limit_account(self, account_id: str, name: str) -> None:
        """Enforce quota ``name`` for a verified account."""
        self._enforce(name, account_id)

    def _enforce(self, name: str, subject: str) -> None:
        """Raises HTTPException 429 ``RATE_LIMIT_EXCEEDED`` when over quota."""
        if _quotas_disabled():
            return
        retry_after = self.hit(name, subject)
        if retry_after is None:
            return
        logger.warning(
            "Quota %s exhausted for %s (retry after %ds)", name, subject, retry_after
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "code": "RATE_LIMIT_EXCEEDED",
                "message": "Too many requests. Please try again later.",
                "retry_after": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )


rate_limiter = LedgerRateLimiter()

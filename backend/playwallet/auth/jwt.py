"""JWT token utilities for account and admin authentication.

Uses HS256 algorithm with a shared secret. Tokens carry `sub`, `role`, `exp`
and `iat` claims. Account tokens use the account id as `sub` and the role
``account``; admin tokens use the admin username and the role ``admin``.
The secret is loaded from the JWT_SECRET environment variable.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from playwallet.config import settings

logger = logging.getLogger("playwallet.auth.jwt")

ALGORITHM = "HS256"
DEFAULT_EXPIRE_HOURS = 24

ROLE_ACCOUNT = "account"
ROLE_ADMIN = "admin"


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT access token.

    Args:
        data: Claims to embed in the token.  Must include at least ``sub``.
        expires_delta: Custom token lifetime.  Defaults to 24 hours.

    Returns:
        A compact JWS string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=DEFAULT_EXPIRE_HOURS))

    to_encode.update({"exp": expire, "iat": now})
    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=ALGORITHM)
    logger.debug("Created JWT for sub=%s, expires=%s", data.get("sub"), expire.isoformat())
    return token


def create_account_token(account_id: str) -> str:
    """Issue the bearer token an account uses for wallet and game calls."""
    return create_access_token(data={"sub": account_id, "role": ROLE_ACCOUNT})


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        ExpiredSignatureError: If the token has expired.
        JWTError: If the token is malformed or the signature is invalid.
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])

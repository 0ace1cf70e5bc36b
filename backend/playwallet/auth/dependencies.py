"""FastAPI dependency-injection callables for authentication and authorization.

Each callable is designed to be used with ``Depends()`` in route signatures.
They read the ``Authorization: Bearer <jwt>`` header, validate the token
and its role, and return the authenticated context.
"""

import logging
from typing import Any

from fastapi import Header, HTTPException, status
from jose import ExpiredSignatureError, JWTError

from playwallet.auth.jwt import ROLE_ACCOUNT, ROLE_ADMIN, decode_token

logger = logging.getLogger("playwallet.auth.dependencies")


def _bearer_claims(authorization: str | None, kind: str) -> dict[str, Any]:
    """Decode the bearer token from an Authorization header value."""
    if authorization is None or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )

    token = authorization[len("Bearer "):]

    try:
        return decode_token(token)
    except ExpiredSignatureError:
        logger.warning("Expired %s JWT presented", kind)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except JWTError:
        logger.warning("Invalid %s JWT presented", kind)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


# ---------------------------------------------------------------------------
# Account JWT dependency
# ---------------------------------------------------------------------------

async def get_current_account_id(
    authorization: str | None = Header(None),
) -> str:
    """Validate an account JWT and return the account id it was issued for.

    Raises:
        HTTPException 401: Missing or invalid token.
        HTTPException 403: Token is valid but not an account token.
    """
    payload = _bearer_claims(authorization, "account")

    account_id = payload.get("sub")
    if payload.get("role") != ROLE_ACCOUNT or not account_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account token required",
        )
    return account_id


# ---------------------------------------------------------------------------
# Admin JWT dependency
# ---------------------------------------------------------------------------

async def get_current_admin(
    authorization: str | None = Header(None),
) -> dict[str, Any]:
    """Validate an admin JWT from the Authorization header.

    Returns:
        A dict with admin context, e.g. ``{"role": "admin", "username": ...}``.

    Raises:
        HTTPException 401: Missing or invalid token.
        HTTPException 403: Token is valid but lacks admin role.
    """
    payload = _bearer_claims(authorization, "admin")

    if payload.get("role") != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )

    return {
        "role": ROLE_ADMIN,
        "username": payload.get("sub", "admin"),
    }

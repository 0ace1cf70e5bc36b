"""Authentication route handlers.

Endpoints:
    POST /api/auth/admin/login  -- Admin JWT login.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from playwallet.auth.jwt import ROLE_ADMIN, create_access_token
from playwallet.config import settings
from playwallet.middleware.rate_limit import rate_limiter

logger = logging.getLogger("playwallet.routes.auth")

router = APIRouter(prefix="/auth", tags=["Auth"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class AdminLoginRequest(BaseModel):
    """Request body for admin login."""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class AdminLoginResponse(BaseModel):
    """Response for a successful admin login."""
    access_token: str
    token_type: str = "bearer"
    username: str


# ---------------------------------------------------------------------------
# POST /api/auth/admin/login
# ---------------------------------------------------------------------------

@router.post(
    "/admin/login",
    response_model=AdminLoginResponse,
    status_code=status.HTTP_200_OK,
)
async def admin_login(request: Request, body: AdminLoginRequest) -> AdminLoginResponse:
    """Authenticate admin and return a JWT.

    Validates the provided credentials against ``ADMIN_USERNAME`` and
    ``ADMIN_PASSWORD`` from the application configuration.

    Raises:
        HTTPException 401: Invalid credentials.
        HTTPException 429: Too many failed login attempts.
    """
    rate_limiter.limit_client(request, "admin_login")

    if body.username != settings.ADMIN_USERNAME or body.password != settings.ADMIN_PASSWORD:
        # Never reveal which field was wrong.  Never log credentials.
        logger.warning("Failed admin login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    token = create_access_token(data={"sub": body.username, "role": ROLE_ADMIN})
    logger.info("Admin login successful for user=%s", body.username)
    return AdminLoginResponse(access_token=token, username=body.username)

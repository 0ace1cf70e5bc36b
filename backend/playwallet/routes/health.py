"""Health check endpoint."""

import logging

from fastapi import APIRouter
from pymongo.errors import PyMongoError

from playwallet.config import settings
from playwallet.dal.database import get_database

logger = logging.getLogger("playwallet.routes.health")
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    Health check endpoint with MongoDB connectivity test.

    Returns 200 OK even if the ledger store is unavailable so the service
    keeps accepting traffic; the store status is reported in the body.

    Returns:
        dict: Health status, version, and database connectivity status.
    """
    health_response = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "checks": {
            "database": "unknown"
        }
    }

    try:
        db = get_database()
        await db.command("ping")
        health_response["checks"]["database"] = "ok"
    except (RuntimeError, PyMongoError) as e:
        logger.warning("Database health check failed: %s", str(e))
        health_response["checks"]["database"] = "down"
        health_response["status"] = "degraded"

    return health_response

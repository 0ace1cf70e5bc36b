"""
PlayWallet FastAPI Application Entry Point.

Configures FastAPI, sets up middleware, registers routes and manages the
MongoDB connection lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from playwallet.config import settings
from playwallet.dal.database import connect_to_mongo, close_mongo_connection, ensure_indexes, get_database
from playwallet.routes.health import router as health_router
from playwallet.routes.auth import router as auth_router
from playwallet.routes.accounts import router as accounts_router
from playwallet.routes.wallet import router as wallet_router
from playwallet.routes.games import router as games_router
from playwallet.routes.admin import router as admin_router

logger = logging.getLogger("playwallet.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.
    Handles startup and shutdown events for MongoDB connection.
    """
    try:
        await connect_to_mongo()
        db = get_database()
        await ensure_indexes(db)
        logger.info("PlayWallet v%s started with database connection", settings.APP_VERSION)
    except PyMongoError as e:
        # Start anyway; ledger calls answer 503 until the store is reachable
        logger.warning(
            "Failed to connect to MongoDB during startup: %s. "
            "Application will start but ledger operations will fail until connection is established.",
            str(e)
        )
        logger.info("PlayWallet v%s started WITHOUT database connection", settings.APP_VERSION)

    yield

    await close_mongo_connection()
    logger.info("PlayWallet shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title="PlayWallet API",
    description="Wager settlement and balance ledger - REST API",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Retry-After"],
    max_age=600,  # Cache preflight requests for 10 minutes
)

# Register routers
app.include_router(health_router)  # Health endpoint at root level
app.include_router(health_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(accounts_router, prefix="/api")
app.include_router(wallet_router, prefix="/api")
app.include_router(games_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "PlayWallet API",
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "playwallet.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )

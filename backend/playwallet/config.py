"""Application configuration using Pydantic BaseSettings."""

import logging
import os
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("playwallet.config")

# Development-only default for JWT_SECRET
_DEV_JWT_SECRET = "dev-secret-key-change-in-production-min-32-characters-long"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # MongoDB Configuration
    MONGO_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "playwallet"
    # Applied to server selection, connect and socket operations
    STORE_TIMEOUT_MS: int = 5000

    # Authentication
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"
    JWT_SECRET: Optional[str] = None

    # CORS Configuration
    # Comma-separated list of allowed origins, or "*" for all origins
    CORS_ORIGINS: str = ""

    # Application Metadata
    APP_VERSION: str = "1.0.0"

    # Ledger limits (currency units)
    MIN_DEPOSIT: Decimal = Decimal("100")
    MIN_WITHDRAWAL: Decimal = Decimal("50")
    MIN_BET: Decimal = Decimal("10")
    HISTORY_MAX_LIMIT: int = 50

    # Calendar used for the "today" commission cutoff
    REPORT_TIMEZONE: str = "UTC"

    # Compare-and-set conflicts tolerated before giving up on a settlement
    SETTLEMENT_MAX_RETRIES: int = 3

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def validate_jwt_secret(cls, v):
        """Validate JWT_SECRET and provide development default with warning."""
        if v is None or v == "":
            is_production = os.getenv("ENVIRONMENT") == "production"
            if is_production:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "This is a critical security requirement."
                )
            logger.warning(
                "JWT_SECRET not set! Using development default. "
                "This is INSECURE for production. "
                "Set JWT_SECRET environment variable."
            )
            return _DEV_JWT_SECRET
        return v

    @field_validator("REPORT_TIMEZONE")
    @classmethod
    def validate_report_timezone(cls, v: str) -> str:
        """Reject timezone names the zoneinfo database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown REPORT_TIMEZONE: {v}") from exc
        return v

    @property
    def report_tz(self) -> ZoneInfo:
        return ZoneInfo(self.REPORT_TIMEZONE)

    @property
    def cors_origins(self) -> list[str]:
        """Return list of allowed CORS origins.

        If CORS_ORIGINS is empty, allows the local development origins
        but returns empty in production.
        """
        if self.CORS_ORIGINS:
            if self.CORS_ORIGINS == "*":
                return ["*"]
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

        is_production = os.getenv("ENVIRONMENT") == "production"
        if is_production:
            logger.warning(
                "CORS_ORIGINS not configured in production. "
                "Set CORS_ORIGINS environment variable."
            )
            return []

        return [
            "http://localhost:3000",
            "http://localhost:19006",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:19006",
        ]


# Global settings instance
settings = Settings()

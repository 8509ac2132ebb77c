from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the warehouse API.

    This is separate from wms.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Warehouse API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for warehouse management: products, inventory, locations, "
            "orders, shipments, customers and suppliers."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, run minimal database seeding after migrations.",
    )

    LOG_LEVEL: str = Field(default="INFO", description="Root log level name")

    # Fulfillment rules
    CREDIT_NEAR_LIMIT_RATIO: float = Field(
        default=0.8,
        gt=0,
        le=1,
        description="Share of the credit limit above which an order is flagged as near the limit.",
    )
    CREDIT_AUTO_RAISE_FACTOR: float = Field(
        default=2.0,
        gt=0,
        description="Multiplier applied to the order total when a credit limit is auto-raised.",
    )
    ORDER_NUMBER_MAX_ATTEMPTS: int = Field(
        default=5,
        ge=1,
        description="How many order numbers to try before giving up on a collision.",
    )

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]


# PUBLIC_INTERFACE
@lru_cache
def get_app_settings() -> AppSettings:
    """Return the process-wide AppSettings populated from environment variables."""
    return AppSettings()

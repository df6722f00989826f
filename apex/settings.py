"""Centralized configuration management for the Apex ledger service."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer of :mod:`apex.settings` observes them.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/apex.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_STRIPE_API_BASE = "https://api.stripe.com"
DEFAULT_STRIPE_TIMEOUT_SECONDS = 20.0
DEFAULT_PAYOUT_CURRENCY = "usd"
DEFAULT_PLATFORM_FEE_PERCENTAGE = 5
DEFAULT_PAYOUT_RATE_LIMIT_MAX_REQUESTS = 10
DEFAULT_PAYOUT_RATE_LIMIT_WINDOW_SECONDS = 60


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Besides the raw environment variables the class exposes a handful of
    derived helpers (normalized database URL, numeric log level) so that the
    engine factory, the FastAPI app and the payout services share one parsing
    implementation.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "Full SQLAlchemy-compatible database URL. Postgres URLs supplied in"
            " sync format (postgres:// or postgresql://) are coerced into the"
            " async psycopg driver string at runtime."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force SQLite usage regardless of DATABASE_URL.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string backing the payout rate limiter.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    stripe_secret_key: str | None = Field(
        default=None,
        alias="STRIPE_SECRET_KEY",
        description="Secret key used to authenticate Stripe Connect transfers.",
    )
    stripe_api_base: str = Field(
        default=DEFAULT_STRIPE_API_BASE,
        alias="STRIPE_API_BASE",
        description="Base URL of the Stripe REST API (overridable for stubs).",
    )
    stripe_timeout_seconds: float = Field(
        default=DEFAULT_STRIPE_TIMEOUT_SECONDS,
        alias="STRIPE_TIMEOUT_SECONDS",
        description="Timeout applied to every Stripe HTTP call.",
    )
    payout_currency: str = Field(
        default=DEFAULT_PAYOUT_CURRENCY,
        alias="PAYOUT_CURRENCY",
        description="ISO currency code used for payout transfers.",
    )
    platform_fee_percentage: int = Field(
        default=DEFAULT_PLATFORM_FEE_PERCENTAGE,
        alias="PLATFORM_FEE_PERCENTAGE",
        ge=0,
        le=100,
        description="Percentage of gross revenue retained by the platform.",
    )
    payout_rate_limit_max_requests: int = Field(
        default=DEFAULT_PAYOUT_RATE_LIMIT_MAX_REQUESTS,
        alias="PAYOUT_RATE_LIMIT_MAX_REQUESTS",
        ge=1,
        description="Payout requests allowed per profile within one window.",
    )
    payout_rate_limit_window_seconds: int = Field(
        default=DEFAULT_PAYOUT_RATE_LIMIT_WINDOW_SECONDS,
        alias="PAYOUT_RATE_LIMIT_WINDOW_SECONDS",
        ge=1,
        description="Length of the payout rate limiting window.",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()

        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith("sqlite+aiosqlite"):
            return url

        raise RuntimeError(
            f"Expected a PostgreSQL connection string or SQLite fallback, received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - payout rate limiting falls back to a "
                "per-process window"
            )

        if not self.stripe_secret_key:
            warnings.append(
                "STRIPE_SECRET_KEY is not set - approving payouts will fail until "
                "a key is configured"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PAYOUT_CURRENCY",
    "DEFAULT_PLATFORM_FEE_PERCENTAGE",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "DEFAULT_STRIPE_API_BASE",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "get_settings",
]

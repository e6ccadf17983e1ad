"""
Runtime settings for SupportDesk.

Read from environment variables at startup. ``validate_settings`` is the
fail-fast check run by ``create_app``.

Variables:
    SUPPORTDESK_ENVIRONMENT      development | production (default: development)
    SUPPORTDESK_DEV_MODE         "1" enables dev fallbacks and console logs
    SUPPORTDESK_DATABASE_URL     SQLAlchemy URL (default: sqlite:///./supportdesk.db)
    SUPPORTDESK_CORS_ORIGINS     Comma-separated list of allowed origins
    SUPPORTDESK_RATE_LIMIT_SWEEP_SECONDS  Interval of the rate-limit cleanup sweep
    GOOGLE_API_KEY               Gemini API key
    GEMINI_MODEL                 Model name (default: gemini-2.5-flash)
    LOG_LEVEL                    Root log level (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

import structlog

from supportdesk.lib.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./supportdesk.db"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class Settings:
    """Process settings resolved from the environment."""

    environment: str = "development"
    dev_mode: bool = False
    log_level: str = "INFO"
    database_url: str = DEFAULT_DATABASE_URL
    google_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    cors_origins: tuple[str, ...] = field(default_factory=tuple)
    rate_limit_sweep_seconds: float = 3600.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Read Settings from the current environment."""
    cors_env = os.getenv("SUPPORTDESK_CORS_ORIGINS", "")
    sweep_raw = os.getenv("SUPPORTDESK_RATE_LIMIT_SWEEP_SECONDS", "3600")
    try:
        sweep_seconds = float(sweep_raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for SUPPORTDESK_RATE_LIMIT_SWEEP_SECONDS: {sweep_raw!r}"
        ) from e

    api_key = os.getenv("GOOGLE_API_KEY", "").strip() or None

    return Settings(
        environment=os.getenv("SUPPORTDESK_ENVIRONMENT", "development"),
        dev_mode=os.getenv("SUPPORTDESK_DEV_MODE") == "1",
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        database_url=os.getenv("SUPPORTDESK_DATABASE_URL", DEFAULT_DATABASE_URL),
        google_api_key=api_key,
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        cors_origins=tuple(
            origin.strip() for origin in cors_env.split(",") if origin.strip()
        ),
        rate_limit_sweep_seconds=sweep_seconds,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide Settings singleton."""
    return load_settings()


def validate_settings(settings: Settings) -> None:
    """
    Validate settings at startup (fail-fast).

    GOOGLE_API_KEY is required outside dev mode; in dev mode a missing key
    is only warned about and the model client reports no response.

    Raises:
        ConfigurationError: If a required value is missing or unsafe
    """
    if not settings.google_api_key:
        if settings.dev_mode:
            logger.warning(
                "config_google_api_key_missing",
                note="Dev mode: model calls will fall back to the default reply.",
            )
        else:
            raise ConfigurationError(
                "Missing required environment variable: GOOGLE_API_KEY. "
                "Set it in your environment or .env file."
            )

    if settings.is_production and "*" in settings.cors_origins:
        raise ConfigurationError(
            "SUPPORTDESK_CORS_ORIGINS contains wildcard '*' which is forbidden in production. "
            "Specify explicit origins instead."
        )

    if settings.rate_limit_sweep_seconds <= 0:
        raise ConfigurationError("SUPPORTDESK_RATE_LIMIT_SWEEP_SECONDS must be positive")

"""Settings for the pet clinic API, read from the environment.

``APP_ENV`` (development, testing, staging or production) picks the
``.env.<APP_ENV>`` file at the project root; when present, its values take
precedence over the process environment. Each concern owns a prefix:
``LOG_``, ``APP_``, ``RATE_LIMIT_`` and ``ANALYTICS_``.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested settings read os.environ only, so the file has to be loaded up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )
    format: str = Field(
        "json",
        description="Log format: 'json' for structured output or 'plain' for humans",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to receive and propagate the request id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Process-level switches."""

    debug: bool = Field(
        False,
        description="Run FastAPI in debug mode",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Fixed-window rate limiting for the protected route."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting on the protected route",
    )
    max_requests: int = Field(
        5,
        description="Maximum number of requests allowed per window (per client address)",
        ge=1,
    )
    window_size_minutes: int = Field(
        1,
        description="Rate limit window size in minutes",
        ge=1,
    )
    protected_route: str = Field(
        "/owners/find",
        description="Request path subject to rate limiting; every other path is allowed",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    purge_interval_seconds: int = Field(
        300,
        description="How often expired counters are swept from memory (0 disables the sweep)",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class AnalyticsSettings(BaseSettings):
    """Worker pool used by the pet analytics fan-out."""

    max_workers: int = Field(
        8,
        description="Number of threads analyzing pets concurrently",
        ge=1,
    )
    task_timeout_seconds: float = Field(
        10.0,
        description="Upper bound for a single pet analysis before the batch fails",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups, built once at import time.

    Invalid values fail fast with a pydantic ValidationError.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()

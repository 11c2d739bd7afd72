"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load and the runtime mode
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Only ``development`` turns on the access log and verbose error bodies.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_payment_settings() -> "PaymentSettings":
    """Build payment webhook settings from environment."""

    return PaymentSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """HTTP pipeline and API configuration."""

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on the API prefix",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per client address)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60 * 60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_path_prefix: str = Field(
        "/api",
        description="Path prefix the rate limiter is mounted on",
    )
    rate_limit_message: str = Field(
        "Too many request by this IP, please try again in an hour!",
        description="Plain-text body returned when a client is throttled",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers on limited paths",
    )
    trust_proxy: bool = Field(
        True,
        description="Use the first X-Forwarded-For hop as the client address",
    )
    max_body_bytes: int = Field(
        10 * 1024,
        description="Maximum JSON / form body size in bytes",
        ge=1,
    )
    max_body_depth: int = Field(
        32,
        description="Maximum nesting depth of a parsed JSON body",
        ge=1,
    )
    max_raw_body_bytes: int = Field(
        100 * 1024,
        description="Maximum raw body size for the payment webhook in bytes",
        ge=1,
    )
    gzip_minimum_size: int = Field(
        1000,
        description="Responses smaller than this many bytes are not compressed",
        ge=0,
    )
    cors_allow_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )
    static_dir: str = Field(
        str(Path(__file__).resolve().parents[1] / "static"),
        description="Directory served under /static",
    )
    page_size: int = Field(
        100,
        description="Default number of documents per page on list endpoints",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class PaymentSettings(BaseSettings):
    """Payment provider webhook configuration."""

    webhook_secret: str | None = Field(
        None,
        description="Shared secret used to sign checkout webhook payloads",
    )
    signature_header: str = Field(
        "Stripe-Signature",
        description="Header carrying the webhook signature",
    )
    signature_tolerance_seconds: int = Field(
        300,
        description="Maximum accepted age of a signed webhook timestamp",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="PAYMENT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate the log file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.

    Environments:
    - development: Local development (access log, stack traces in errors)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    payments: PaymentSettings = Field(default_factory=_build_payment_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()

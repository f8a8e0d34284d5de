"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
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


def _build_auth_settings() -> "AuthSettings":
    """Build auth settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AuthSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_auth_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_database_settings() -> "DatabaseSettings":
    return DatabaseSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AuthSettings(BaseSettings):
    """Bearer token (JWT) configuration."""

    jwt_secret: str = Field(
        ...,
        description="Shared secret used to verify (and, for local use, sign) bearer tokens",
    )
    jwt_algorithm: str = Field(
        "HS256",
        description="JWT signing algorithm",
    )
    identity_claim: str = Field(
        "Email",
        description="Token claim used as the caller identity and rate-limit partition key",
    )
    audience: str | None = Field(
        None,
        description="Expected 'aud' claim; audience is not checked when unset",
    )
    issuer: str | None = Field(
        None,
        description="Expected 'iss' claim; issuer is not checked when unset",
    )
    token_expire_minutes: int = Field(
        60,
        description="Lifetime of tokens minted by create_access_token",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-identity rate limiting",
    )
    rate_limit_anonymous_permits: int = Field(
        30,
        description="Requests allowed per window for callers without a bearer token",
        ge=1,
    )
    rate_limit_anonymous_window_minutes: int = Field(
        5,
        description="Window length in minutes for anonymous callers",
        ge=1,
    )
    rate_limit_authenticated_permits: int = Field(
        60,
        description="Requests allowed per window for identities without a stored profile",
        ge=1,
    )
    rate_limit_authenticated_window_minutes: int = Field(
        5,
        description="Window length in minutes for identities without a stored profile",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_max_partitions: int | None = Field(
        10_000,
        description="Maximum tracked identities before least recently used ones are evicted",
        ge=1,
    )
    quota_cache_ttl_seconds: int = Field(
        30,
        description="TTL of cached rate-limit profiles (0 disables the cache)",
        ge=0,
    )
    quota_cache_max_entries: int = Field(
        4096,
        description="Maximum number of cached rate-limit profiles",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Relational store holding users and todo items."""

    url: str = Field(
        "sqlite:///./todo.db",
        description="SQLAlchemy database URL (in-memory SQLite is rejected)",
    )
    echo: bool = Field(
        False,
        description="Log emitted SQL statements",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate log file at this size (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation id header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    db: DatabaseSettings = Field(default_factory=_build_database_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()

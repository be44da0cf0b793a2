"""
Constants and configuration for the ChatKit auth gateway.
Centralizes token parameters and configuration values.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

import os
import threading

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
)

# ============================================================================
# Project Paths
# ============================================================================

#: Project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# ============================================================================
# ChatKit Client Secret Configuration
# ============================================================================

#: Literal first field of every client secret.
TOKEN_PREFIX = "chatkit"

#: Field delimiter of the client secret wire format.
TOKEN_DELIMITER = "_"

#: Number of hex characters kept from the HMAC-SHA256 digest.
SIGNATURE_HEX_LENGTH = 16

#: Default client secret lifetime (1 hour).
TOKEN_VALIDITY_MS = 60 * 60 * 1000

#: Clients are told to refresh once a secret is this close to expiry (5 minutes).
EXPIRY_WARNING_MS = 5 * 60 * 1000

#: Signing secret used when CHATKIT_SIGNING_SECRET is not configured.
#: Rejected in production by Settings validation.
DEVELOPMENT_SIGNING_SECRET = "development-secret-key-change-in-production"

#: Request header carrying the ChatKit client secret on follow-up calls.
CLIENT_SECRET_HEADER = "X-ChatKit-Client-Secret"

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size in bytes for log files before rotation (10MB).
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of auth audit log backups to retain during rotation.
LOG_BACKUP_COUNT_AUDIT = 5

#: Number of error log backups to retain during rotation.
LOG_BACKUP_COUNT_ERRORS = 3

#: Characters of a subject kept in console log lines.
LOG_SUBJECT_PREVIEW_LENGTH = 24

# ============================================================================
# Environment Configuration with Pydantic Validation
# ============================================================================

#: Valid environment names for configuration loading
Environment = Literal["development", "production", "test"]

#: Backend source directory for .env file resolution
_BACKEND_DIR = Path(__file__).parent.parent


def _get_env_files() -> list[Path]:
    """Determine which .env files to load based on APP_ENV.

    Load order (later files override earlier - pydantic-settings last-wins):
    1. .env (base defaults) - lowest priority
    2. .env.{environment} (environment-specific overrides)
    3. .env.local (local developer overrides, gitignored) - highest priority

    Returns:
        List of Path objects for env files that exist.
    """
    env_name = os.getenv("APP_ENV", "development").lower()
    if env_name not in ("development", "production", "test"):
        env_name = "development"

    candidates = [
        _BACKEND_DIR / ".env",
        _BACKEND_DIR / f".env.{env_name}",
        _BACKEND_DIR / ".env.local",
    ]
    return [p for p in candidates if p.exists()]


def _reload_dotenv_into_environ() -> None:
    """Reload our dotenv files into os.environ so the environment-specific
    values override anything loaded earlier by other libraries.

    Must be called BEFORE Settings() instantiation.
    """
    from dotenv import load_dotenv

    for env_file in _get_env_files():
        load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    """Environment settings with validation and environment-specific file support.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables (standard Docker/K8s behavior)
    3. .env.local > .env.{APP_ENV} > .env (dotenv files, last wins)

    Set APP_ENV to control which environment config to load:
    - development (default): Local development settings
    - production: Production settings with stricter validation
    - test: Test environment settings
    """

    # Environment identification
    app_env: Environment = Field(default="development", description="Application environment")

    # Debug and logging
    debug: bool = Field(default=False, description="Enable debug logging and debug info in error responses")
    log_dir: str | None = Field(default=None, description="Directory for JSON log files (default: <project>/logs)")

    # API server
    api_port: int = Field(default=8000, description="FastAPI port")
    api_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_version: str = Field(default="1.0.0", description="Application version")

    # ChatKit client secrets
    chatkit_signing_secret: str = Field(
        default=DEVELOPMENT_SIGNING_SECRET,
        description="HMAC-SHA256 key used to sign ChatKit client secrets",
    )
    chatkit_token_validity_ms: int = Field(
        default=TOKEN_VALIDITY_MS,
        description="Client secret lifetime in milliseconds",
    )
    chatkit_expiry_warning_ms: int = Field(
        default=EXPIRY_WARNING_MS,
        description="Window before expiry in which a client secret is reported as near expiry",
    )

    # Identity provider (bearer JWT verification)
    identity_jwt_key: str = Field(
        default="change-me-in-prod",
        description="Shared secret or PEM public key used to verify identity provider session tokens",
    )
    identity_jwt_algorithms: str = Field(
        default="HS256",
        description="Comma-separated signing algorithms accepted for identity provider session tokens",
    )
    identity_jwt_issuer: str | None = Field(default=None, description="Expected 'iss' claim, if any")
    identity_jwt_audience: str | None = Field(default=None, description="Expected 'aud' claim, if any")

    # Local development convenience
    allow_localhost_noauth: bool = Field(
        default=False,
        description="Treat unauthenticated localhost requests as the default subject",
    )
    default_subject: str = Field(default="user_local", description="Subject used for localhost no-auth requests")

    # CORS
    cors_allow_origins: str = Field(default="*", description="Comma-separated list of allowed CORS origins")

    # Hot-reload support (development only)
    config_hot_reload: bool = Field(
        default=False,
        description="Enable configuration hot-reloading (development only, has performance cost)",
    )

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority for environment-specific config.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings() constructor
        2. env_settings - Environment variables
        3. dotenv files - .env.local > .env.{APP_ENV} > .env (last-wins in list)
        """
        dotenv_source = DotEnvSettingsSource(
            settings_cls,
            env_file=_get_env_files(),
            env_file_encoding="utf-8",
        )
        return (init_settings, env_settings, dotenv_source)

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | None) -> str:
        """Validate and normalize APP_ENV value."""
        if v is None:
            return "development"
        normalized = str(v).lower()
        if normalized not in ("development", "production", "test"):
            raise ValueError(f"app_env must be 'development', 'production', or 'test', got '{v}'")
        return normalized

    @field_validator("chatkit_signing_secret")
    @classmethod
    def validate_signing_secret(cls, v: str) -> str:
        """Validate signing secret meets minimum security requirements."""
        if not v or len(v) < 16:
            raise ValueError("chatkit_signing_secret must be at least 16 characters")
        return v

    @field_validator("chatkit_token_validity_ms", "chatkit_expiry_warning_ms")
    @classmethod
    def validate_positive_window(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token windows must be positive")
        return v

    @model_validator(mode="after")
    def validate_token_windows(self) -> Settings:
        """Validate window relationships and production safety."""
        if self.chatkit_expiry_warning_ms >= self.chatkit_token_validity_ms:
            raise ValueError("chatkit_expiry_warning_ms must be shorter than chatkit_token_validity_ms")

        if self.app_env == "production":
            if self.chatkit_signing_secret == DEVELOPMENT_SIGNING_SECRET:
                raise ValueError(
                    "Configuration Error: chatkit_signing_secret must be changed from default in production.\n"
                    "Set CHATKIT_SIGNING_SECRET to a secure random string in your .env.production file."
                )
            if self.identity_jwt_key == "change-me-in-prod":
                raise ValueError(
                    "Configuration Error: identity_jwt_key must be configured in production.\n"
                    "Set IDENTITY_JWT_KEY to the identity provider's verification key."
                )
            if self.allow_localhost_noauth:
                raise ValueError(
                    "Configuration Error: allow_localhost_noauth must be False in production.\n"
                    "Set ALLOW_LOCALHOST_NOAUTH=false in your .env.production file."
                )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    @property
    def identity_jwt_algorithms_list(self) -> list[str]:
        """Get accepted identity token algorithms as a list."""
        return [a.strip() for a in self.identity_jwt_algorithms.split(",") if a.strip()]

    @property
    def log_path(self) -> Path:
        """Resolved directory for JSON log files."""
        return Path(self.log_dir) if self.log_dir else PROJECT_ROOT / "logs"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.app_env == "test"


# ============================================================================
# Settings Management (Thread-safe with Hot-Reload Support)
# ============================================================================


class _SettingsManager:
    """Thread-safe settings manager with optional hot-reload support."""

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        """Get settings instance, reloading on each call when hot-reload is enabled.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        if self._instance is not None and not self._instance.config_hot_reload:
            return self._instance

        with self._lock:
            # Double-check after acquiring lock
            if self._instance is not None and not self._instance.config_hot_reload:
                return self._instance

            _reload_dotenv_into_environ()
            self._instance = Settings()
            return self._instance

    def reload(self) -> Settings:
        """Force reload settings from environment files."""
        with self._lock:
            _reload_dotenv_into_environ()
            self._instance = Settings()
            return self._instance

    def clear(self) -> None:
        """Clear cached settings instance."""
        with self._lock:
            self._instance = None


# Module-level singleton manager
_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get settings instance with optional hot-reload support.

    This is the primary entry point for accessing application settings.
    Settings are validated at startup and cached for performance.

    Raises:
        ValueError: If required configuration is missing or invalid.
    """
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload settings from environment files."""
    return _settings_manager.reload()


def clear_settings_cache() -> None:
    """Clear cached settings instance.

    Primarily useful for testing to ensure fresh settings on each test.
    """
    _settings_manager.clear()

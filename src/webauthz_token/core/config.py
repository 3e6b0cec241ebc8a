"""Configuration management for webauthz-token.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once and is
immutable during runtime.
"""

import hashlib
import string
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Characters that may appear in an unpadded url-safe base64 value
BASE64URL_ALPHABET = frozenset(string.ascii_letters + string.digits + "-_")


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WEBAUTHZ_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "webauthz-token"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./wt_data/tokens.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Token Settings
    token_separator: str = Field(
        default=":",
        description="Character joining type, client_id and secret in tokens and indexes",
    )
    token_hash_algorithm: str = Field(
        default="sha384",
        description="hashlib algorithm used to derive the token index",
    )

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("token_separator")
    @classmethod
    def validate_token_separator(cls, v: str) -> str:
        """Validate the separator is one character outside the base64url alphabet."""
        return validate_separator(v)

    @field_validator("token_hash_algorithm")
    @classmethod
    def validate_token_hash_algorithm(cls, v: str) -> str:
        """Validate the hash algorithm is known to hashlib and has a fixed size."""
        name = v.lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {v}")
        if name.startswith("shake_"):
            raise ValueError(f"Variable length digests are not supported: {v}")
        return name

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


def validate_separator(separator: str) -> str:
    """Check that a token separator can split tokens unambiguously.

    Args:
        separator: Candidate separator.

    Returns:
        The separator unchanged.

    Raises:
        ValueError: If the separator is not a single character or could
            appear inside a base64url encoded secret.
    """
    if not isinstance(separator, str) or len(separator) != 1:
        raise ValueError("Token separator must be exactly one character")
    if separator in BASE64URL_ALPHABET:
        raise ValueError(
            f"Token separator {separator!r} collides with the base64url alphabet"
        )
    return separator


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()

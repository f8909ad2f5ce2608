"""
Configuration management for Promofire SDK.

This module provides PromofireSettings class that handles all SDK configuration
with support for environment variables, .env files, and sensible defaults.

Environment variables are automatically loaded with PROMOFIRE_ prefix.
Example: PROMOFIRE_SECRET=your_sdk_secret
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class PromofireSettings(BaseSettings):
    """
    Configuration settings for Promofire SDK with environment variable support.

    This class automatically loads configuration from:
    - Environment variables (with PROMOFIRE_ prefix)
    - .env files
    - Default values for optional settings

    The SDK secret is optional here because it is normally handed to
    ``PromofireClient.configure()``; the CLI falls back to this value.

    Example:
        # From environment
        export PROMOFIRE_SECRET=your_sdk_secret
        export PROMOFIRE_TIMEOUT=60.0

        # In code
        settings = PromofireSettings()
    """

    secret: str | None = Field(default=None, description="SDK secret of the tenant")
    base_url: str = "https://api.stage.promofire.io"
    timeout: float = 30.0
    transport: str = "httpx"  # default, can be 'aiohttp' or 'requests'
    platform: str = "web"
    app_version: str = "Unknown"
    app_build: str = "Unknown"
    retry_attempts: int = Field(default=3, ge=1)
    campaigns_cache_ttl: int = 60
    token_cache_path: Path = Field(
        default=Path.home() / ".promofire_sdk" / "token.json"
    )
    persist_token: bool = True
    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="PROMOFIRE_", env_file=".env", extra="ignore"
    )

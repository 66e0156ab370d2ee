"""
Configuration for tutorix.

Settings are loaded from a `.env` file and `TUTORIX_`-prefixed environment
variables (e.g. `TUTORIX_API_BASE_URL`).
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the data layer."""

    SERVICE_NAME: str = "tutorix"

    # HTTP
    API_BASE_URL: str = "http://localhost:3010"
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    API_TOKEN: str | None = Field(
        default=None,
        description="Static bearer token; real apps inject a token provider instead",
    )

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_DATABASE_URL: str = Field(
        default="",
        description="SQLAlchemy async URL of the cache database; empty keeps the cache in memory",
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] = "console"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="TUTORIX_",
    )


__all__ = ("Settings",)

"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Deal Analysis"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Narrative enrichment (OpenAI-compatible chat completions)
    narrative_api_key: Optional[str] = None
    narrative_base_url: Optional[str] = None
    narrative_model: str = "gpt-4o-mini"
    narrative_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

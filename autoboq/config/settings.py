"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Gemini - without a key the extraction pipeline runs in simulation mode
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "api_key", "google_api_key"),
    )
    gemini_model: str = "gemini-3-pro-preview"
    gemini_temperature: float = 1.0
    request_timeout_seconds: int = 300

    # Orchestration pacing (seconds)
    cooling_seconds: float = 4.0
    rate_limit_base_seconds: float = 4.0
    transient_retry_seconds: float = 2.0
    max_attempts: int = 3
    simulation_delay_seconds: float = 1.5

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def simulation_mode(self) -> bool:
        """True when no credential for the external model is configured."""
        return not self.gemini_api_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

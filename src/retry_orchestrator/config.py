"""
Configuration settings for the retry orchestrator.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Retry Orchestrator"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Retry Defaults ===
    RETRY_DEFAULT_COUNT: int = Field(default=4, ge=1)  # Attempts when the caller passes no policy
    RETRY_DEFAULT_INTERVAL_SECONDS: float = Field(default=3.0, ge=0.0)
    RETRY_MAX_INTERVAL_SECONDS: Optional[float] = Field(default=None, ge=0.0)  # None = uncapped

    # === Monitoring ===
    METRICS_ENABLED: bool = True


# Global settings instance
settings = Settings()

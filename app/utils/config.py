"""
Configuration management for the file ingestion pipeline.

Uses pydantic-settings to load process settings from environment variables
and .env files. The per-pipeline configuration document (watched folder,
schema, pool sizing) lives in app.models.schemas.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Logging
    log_level: str = "INFO"

    # Pipeline configuration document (JSON)
    ingest_config_file: Path = Path("config/file_ingest.json")

    # Event delivery (fire-and-forget)
    sender_url: Optional[str] = None
    sender_timeout: float = 10.0  # seconds

    # Watcher Configuration
    event_queue_size: int = 1000
    watcher_poll_interval: float = 1.0  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

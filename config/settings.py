"""Configuration management using pydantic-settings."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Durable cache tier (disabled when no project id is configured)
    cache_enabled: bool = True
    cache_project_id: Optional[str] = None
    cache_database_url: str = "sqlite:///./weekly_recap_cache.db"
    cache_credentials_path: Optional[Path] = None
    durable_delete_batch_size: int = 500

    # Hot (in-memory) cache tier
    hot_cache_capacity: int = 10
    hot_cache_max_ttl_seconds: int = 3600

    # Start-up warm-up: weeks 0..warmup_weeks-1
    warmup_enabled: bool = True
    warmup_weeks: int = 12

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

"""Centralized configuration from environment variables.

All configuration that varies between environments (local dev, CI, production)
is read from environment variables here. Import from this module instead of
reading os.environ directly in service code.
"""
import os
from functools import lru_cache


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: str = os.getenv("DB_PORT", "5432")
    DB_NAME: str = os.getenv("DB_NAME", "brewlog")
    DB_USER: str = os.getenv("DB_USER", "brewlog")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")

    # CORS
    CORS_ORIGINS: list[str] = os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
    ).split(",")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Backup metadata
    APP_VERSION: str = os.getenv("APP_VERSION", "0.1.0")
    EXPORTED_BY: str = os.getenv("EXPORTED_BY", "Coffee Tracker")

    # Client-side state (drafts, histories, templates). Empty = in-memory only.
    STATE_FILE: str = os.getenv("STATE_FILE", "")

    # Outbound API client
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "10"))
    API_MAX_RETRIES: int = int(os.getenv("API_MAX_RETRIES", "3"))
    API_RETRY_DELAY_SECONDS: float = float(os.getenv("API_RETRY_DELAY_SECONDS", "1"))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

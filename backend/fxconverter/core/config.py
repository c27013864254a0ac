"""
Application configuration using Pydantic BaseSettings.
Loads environment variables and provides typed configuration.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project metadata
    PROJECT_NAME: str = "FX Converter"
    VERSION: str = "0.1.0"
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://frontend:3000",
    ]

    # Upstream FX provider
    UPSTREAM_BASE_URL: str = "https://api.fxratesapi.com"
    UPSTREAM_TIMEOUT: int = 10
    UPSTREAM_TIMESERIES_TIMEOUT: int = 15
    UPSTREAM_USER_AGENT: str = "Currency Converter App/1.0"

    # Rate cache
    CACHE_BACKEND: str = "file"  # "file" or "memory"
    CACHE_DIR: str = "cache"
    SYMBOLS_CACHE_TTL: int = 3600
    RATE_CACHE_TTL: int = 300
    TIMESERIES_CACHE_TTL: int = 300

    # Conversion history
    HISTORY_BACKEND: str = "file"  # "file" or "memory"
    HISTORY_FILE: str = "data/history.json"
    HISTORY_MAX_RECORDS: int = 50
    HISTORY_DISPLAY_LIMIT: int = 10

    # Observability
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

"""Application settings and configuration"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Tiltboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Fermentation API (brews, hydrometers, readings)
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    API_KEY: Optional[str] = None
    USER_AGENT: str = "Tiltboard/1.0"

    # API client resilience controls
    API_TIMEOUT_SECONDS: float = 10.0
    API_MAX_RETRIES: int = 3
    API_BACKOFF_BASE_SECONDS: float = 0.5
    API_BACKOFF_MAX_SECONDS: float = 8.0

    # Query cache (revalidated with ETags once stale)
    CACHE_TTL_SECONDS: float = 30.0
    CACHE_MAX_ENTRIES: int = 256

    # Readings presentation
    READINGS_PAGE_SIZE: int = 25
    DISPLAY_TIMEZONE: str = "UTC"

    # Fermentation metrics
    TREND_THRESHOLD_F: float = 0.5
    TREND_REPORT_INSUFFICIENT: bool = False  # Report "insufficient-data" instead of "steady" below 3 readings

    # UI context
    DEFAULT_THEME: str = "system"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()

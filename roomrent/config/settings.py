"""Application settings using Pydantic."""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This uses Pydantic to:
    1. Load values from .env file
    2. Validate data types
    3. Provide defaults
    """

    # API Settings
    PROJECT_NAME: str = "RoomRent"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Environment & Logging
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_JSON: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ]

    # Supabase (project URL and public anon key are required)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    SUPABASE_SCHEMA: str = "public"

    # Storage
    ROOM_IMAGES_BUCKET: str = "room-images"
    MAX_ROOM_IMAGES: int = 5

    # Live query refresh intervals (seconds)
    ROOMS_POLL_INTERVAL: float = 3.0
    INQUIRIES_POLL_INTERVAL: float = 3.0
    CITIES_POLL_INTERVAL: float = 10.0

    # Seconds a resolved role or profile may be reused; 0 rereads it on every request
    PROFILE_MAX_AGE: float = 0.0

    # Session-scoped clients and unmounted cache entries idle this long (seconds) are dropped
    SESSION_IDLE_TIMEOUT: float = 900.0

    # Number of rooms shown in the home page "featured" strip
    FEATURED_ROOMS_LIMIT: int = 6

    # Route gate redirect targets
    AUTH_REDIRECT_PATH: str = "/auth"
    NEUTRAL_REDIRECT_PATH: str = "/"

    # Load environment variables from .env; extra fields are ignored.
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_file_encoding='utf-8',
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Create cached settings instance.
    """
    return Settings()


# Create a single instance for easy importing
settings = get_settings()

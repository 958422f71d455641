"""
config.py - Application Configuration

This module defines all configuration settings for the application.
Settings are loaded from environment variables or .env file.
"""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from pathlib import Path
from typing import Optional

# Calculate .env path at module level (project root / .env)
_ENV_FILE_PATH = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    """
    Application settings.

    All settings can be overridden by environment variables.
    For example, set GEMINI_API_KEY in .env file.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields in .env
    )

    # Application Info
    APP_NAME: str = "Social Post Fact Checker"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./factcheck.db"

    # Quota
    DAILY_LIMIT: int = 20

    # Content extraction service (markdown reader)
    READER_BASE_URL: str = "https://r.jina.ai"
    # None means wait as long as the transport allows
    FETCH_TIMEOUT_SECONDS: Optional[float] = None
    IMAGE_TIMEOUT_SECONDS: Optional[float] = None

    # Gemini
    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY"),
    )
    GEMINI_MODEL: str = "gemini-2.5-flash"
    TEMPERATURE: float = 0.3
    MAX_OUTPUT_TOKENS: int = 2048
    MAX_IMAGES: int = 16
    MAX_IMAGE_BYTES: int = 4 * 1024 * 1024
    MAX_TOTAL_IMAGE_BYTES: int = 15 * 1024 * 1024
    ENABLE_SEARCH_GROUNDING: bool = False

    # Background workers
    WORKER_COUNT: int = 4


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses lru_cache to ensure settings are only loaded once.

    Returns:
        Settings instance
    """
    print("[config] Loading settings")
    settings = Settings()
    print("[config] App name:", settings.APP_NAME)
    print("[config] Version:", settings.VERSION)
    print("[config] Model:", settings.GEMINI_MODEL)
    print("[config] Daily limit:", settings.DAILY_LIMIT)
    return settings

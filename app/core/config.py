from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_NAME: str = "New Eden Faces"
    APP_ENV: Literal["development", "production"] = "production"

    REDIS_URL: str = "redis://localhost:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "faces:"

    # EVE Online XML API
    REGISTRY_BASE_URL: str = "https://api.eveonline.com"
    REGISTRY_TIMEOUT: float = 10.0
    REGISTRY_MAX_RETRIES: int = 3

    # A character is deleted once its report count goes above this value
    REPORT_THRESHOLD: int = 4
    LEADERBOARD_LIMIT: int = 100
    # WATCH/MULTI retries before a vote is given up as conflicting
    VOTE_MAX_ATTEMPTS: int = 5


settings = Settings()

APP_VERSION = __version__

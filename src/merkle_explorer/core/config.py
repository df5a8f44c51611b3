"""
Merkle Explorer - Configuration
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    # Application
    APP_NAME: str = "Merkle Explorer"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    # Hash trees
    MAX_ITEMS: int = Field(default=10_000, ge=1)
    LEAF_HASH_WORKERS: int = Field(default=1, ge=1)

    # Metrics
    METRICS_ENABLED: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

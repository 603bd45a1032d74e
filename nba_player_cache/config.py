"""Configuration management for the player cache service.

Settings are loaded from environment variables (and an optional .env file)
using pydantic-settings. Every field has a default so the CLI and tests can
run without any environment; the balldontlie API key is only required once a
request is actually made.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Upstream:
    - BALLDONTLIE_API_KEY: API key sent as the Authorization header
    - BALLDONTLIE_BASE_URL / BALLDONTLIE_ADVANCED_URL: v1 and v2 API roots

    Cache:
    - CACHE_BACKEND: "disk" (diskcache) or "database" (SQLAlchemy)
    - STATS_CACHE_TTL / IDENTITY_CACHE_TTL: the two independent TTL classes
    - CACHE_VERSION: bump to invalidate every stored entry

    Refresh:
    - REFRESH_BATCH_SIZE / REFRESH_BATCH_DELAY: concurrency cap and pause
    """

    # Upstream provider
    balldontlie_api_key: str = Field(default="", description="balldontlie API key")
    balldontlie_base_url: str = Field(default="https://api.balldontlie.io/v1")
    balldontlie_advanced_url: str = Field(default="https://api.balldontlie.io/v2")
    request_timeout: float = Field(default=10.0, gt=0, le=120)

    # Cache storage
    cache_backend: Literal["disk", "database"] = Field(default="disk")
    cache_dir: str = Field(default=".cache/player_cache")
    database_url: str = Field(default="", description="Overrides DATABASE_URL resolution when set")
    cache_version: int = Field(default=1, ge=1)
    stats_cache_ttl: int = Field(default=3600, ge=1, description="Seconds a player payload stays fresh")
    identity_cache_ttl: int = Field(default=86400, ge=1, description="Seconds a player identity stays fresh")
    cleanup_probability: float = Field(default=0.1, ge=0.0, le=1.0)

    # Refresh pipeline
    refresh_batch_size: int = Field(default=5, ge=1, le=50)
    refresh_batch_delay: float = Field(default=1.0, ge=0.0, le=60.0)
    roster_page_size: int = Field(default=100, ge=1, le=100)
    max_roster_pages: int = Field(default=60, ge=1, le=500)

    # Aggregation
    recent_games_limit: int = Field(default=25, ge=1, le=100)
    history_seasons: int = Field(default=6, ge=1, le=20)
    net_rating_policy: Literal["zero", "exclude"] = Field(default="zero")

    environment: str = Field(default="development")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance with validated configuration
    """
    return Settings()

"""Configuration system for listingresolver.

Uses pydantic-settings to load configuration from environment variables
and .env files with defaults suited to the bundled residential shards.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables are prefixed with LISTINGS_ (e.g., LISTINGS_SHARD_BASE_URL).
    """

    model_config = SettingsConfigDict(
        env_prefix="LISTINGS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote sources
    shard_base_url: str = Field(
        default="http://localhost:3000",
        description="Root URL that shard references are resolved against",
    )
    record_store_url: str | None = Field(
        default=None,
        description="Base URL of the durable record store (admin-entered listings)",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds for shard and record store requests",
    )

    # Cache settings
    domain_tag: str = Field(
        default="residential",
        description="Domain component of shard cache keys",
    )
    cache_dir: Path = Field(
        default=Path.home() / ".listingresolver" / "cache",
        description="Directory for the shard cache and favorites databases",
    )
    cache_db_name: str = Field(default="shards.db")
    favorites_db_name: str = Field(default="favorites.db")
    cache_ttl_hours: int | None = Field(
        default=None,
        ge=1,
        description="Optional shard cache expiry; None keeps entries until cleared",
    )

    # Ordering
    always_randomize: list[str] = Field(
        default=["miami", "miami-beach"],
        description="Location keys reshuffled on every fresh load",
    )


# Singleton instance for easy import
config = Settings()

"""
Shared configuration management for the cache client.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "http://localhost:8080"


class CacheClientConfig(BaseSettings):
    """Client configuration, read from CACHE_CLIENT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_CLIENT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    base_url: str = Field(default=DEFAULT_BASE_URL)
    # 0 disables the deadline
    default_timeout: float = Field(default=0, ge=0)
    log_level: str = Field(default="info")
    enable_metrics: bool = Field(default=True)


@lru_cache(maxsize=1)
def get_config() -> CacheClientConfig:
    """Get the process-wide client configuration."""
    return CacheClientConfig()

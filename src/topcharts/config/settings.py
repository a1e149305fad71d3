"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")

    url: str = Field(
        default="sqlite+aiosqlite:///./topcharts.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_pre_ping: bool = True
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600


class LastfmSettings(BaseSettings):
    """Last.fm API settings.

    Last.fm is OPTIONAL. Without an API key the Last.fm provider answers every
    request with an empty item list instead of failing.
    """

    model_config = SettingsConfigDict(env_prefix="LASTFM_", extra="ignore")

    api_key: str = Field(default="", description="Last.fm API key")
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return bool(self.api_key)


class TopsSettings(BaseSettings):
    """Top charts cache settings."""

    model_config = SettingsConfigDict(env_prefix="TOPS_", extra="ignore")

    default_ttl_days: int = Field(
        default=30, ge=1, description="How long a successful fetch stays valid"
    )
    failure_ttl_minutes: int = Field(
        default=15,
        ge=1,
        description="Expiry set on failed cache records (never served)",
    )
    provider_timeout_seconds: float = Field(
        default=20.0, gt=0, description="Timeout for a single provider call"
    )
    default_limit: int = Field(default=50, ge=1, le=500)


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Top-level settings aggregating all groups."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = "topcharts"
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    lastfm: LastfmSettings = Field(default_factory=LastfmSettings)
    tops: TopsSettings = Field(default_factory=TopsSettings)
    observability: ObservabilitySettings = Field(
        default_factory=ObservabilitySettings
    )


# Hey future me - cached so every caller shares one Settings instance. Tests that
# tweak env vars must call get_settings.cache_clear() afterwards!
@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

"""
Application configuration using Pydantic Settings.

Values are read from the environment (prefix ``LIVEPLAN_``) or a local ``.env``.
"""

from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from liveplan.services.selection import SelectionPolicy


class Settings(BaseSettings):
    """LivePlan settings."""

    model_config = SettingsConfigDict(
        env_prefix="LIVEPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "LivePlan"
    debug: bool = False

    # Persistence
    database_url: str = Field(
        default="sqlite:///./liveplan.db",
        description="SQLAlchemy URL of the local store",
    )

    # Background refresh
    redis_url: str = Field(default="redis://localhost:6379/0")
    refresh_retry_delay_seconds: int = 30

    # Engine defaults
    timezone: str = Field(default="UTC", description="IANA timezone used for DateKeys")
    overdue_lookback_days: int | None = Field(
        default=7,
        ge=0,
        description="Days of missed recurring occurrences to report; None reaches back to the anchor",
    )
    selection_policy: SelectionPolicy = SelectionPolicy.TODAY_OVERVIEW
    title_max_length: int = Field(default=24, ge=2)

    # Logging
    log_level: str | None = None
    log_json: bool = False

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()

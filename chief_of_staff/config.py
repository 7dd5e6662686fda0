from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Debug mode
    debug: bool = Field(default=False, alias="DEBUG")

    # Database (SQLite for single-user installs, postgresql+asyncpg otherwise)
    database_url: str = Field(default="sqlite+aiosqlite:///./chief_of_staff.db", alias="DATABASE_URL")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    console_log_level: str = Field(default="INFO", alias="CONSOLE_LOG_LEVEL")

    # Web push (generate once with `vapid --gen` and keep in .env)
    vapid_public_key: Optional[str] = Field(default=None, alias="VAPID_PUBLIC_KEY")
    vapid_private_key: Optional[str] = Field(default=None, alias="VAPID_PRIVATE_KEY")
    vapid_subject: str = Field(default="mailto:admin@example.com", alias="VAPID_SUBJECT")
    push_ttl_seconds: int = Field(default=86400, alias="PUSH_TTL_SECONDS")

    # Notification scheduler
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    scheduler_interval_minutes: int = Field(default=15, alias="SCHEDULER_INTERVAL_MINUTES")
    scheduler_initial_delay_seconds: int = Field(default=5, alias="SCHEDULER_INITIAL_DELAY_SECONDS")
    scheduler_timezone: str = Field(default="UTC", alias="SCHEDULER_TIMEZONE")  # wall clock for quiet hours/digest
    digest_window_minutes: int = Field(default=15, alias="DIGEST_WINDOW_MINUTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]

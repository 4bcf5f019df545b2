"""Pydantic-settings configuration for the Power Position service.

Loads scheduling, source and output parameters from environment variables
(prefixed ``POWER_POSITION_``) or a ``.env`` file, with defaults suitable for
a local run against the mock trade source.
"""

from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

DEFAULT_RUN_TIME = time(23, 5)
DEFAULT_TIME_ZONE = "Europe/London"
PLACEHOLDER_API_URL = "http://example"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POWER_POSITION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Schedule
    daily_run_time: str = "23:05"  # HH:MM, local to time_zone
    time_zone: str = DEFAULT_TIME_ZONE

    # Trade source
    power_day_api_url: str = PLACEHOLDER_API_URL
    fetch_timeout_seconds: float = 30.0
    fetch_max_retries: int = 3

    # Queue root (pending/, done/, out/)
    output_directory: str = "."

    # Logging
    log_level: str = "INFO"
    enable_file_log: bool = True
    log_directory: str = "."

    @computed_field
    @property
    def use_mock_source(self) -> bool:
        """True when no real trades API has been configured."""
        url = self.power_day_api_url.strip().rstrip("/")
        return url == PLACEHOLDER_API_URL or "mock" in url.lower()

    def get_run_time(self) -> time:
        """Parse ``daily_run_time``, falling back to 23:05 if it is invalid."""
        try:
            hours, minutes = self.daily_run_time.strip().split(":")
            return time(int(hours), int(minutes))
        except ValueError:
            logger.warning(
                "invalid_daily_run_time",
                value=self.daily_run_time,
                fallback=DEFAULT_RUN_TIME.strftime("%H:%M"),
            )
            return DEFAULT_RUN_TIME

    def get_time_zone(self) -> ZoneInfo:
        """Resolve ``time_zone``, falling back to Europe/London if unknown."""
        try:
            return ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(
                "unknown_time_zone",
                value=self.time_zone,
                fallback=DEFAULT_TIME_ZONE,
            )
            return ZoneInfo(DEFAULT_TIME_ZONE)


# Singleton instance
settings = Settings()

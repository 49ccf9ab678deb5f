"""
Configuration loaded from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import pytz
from dotenv import load_dotenv

from session_calendar.markets import Region

# Load .env file if present (local dev); deployed hosts inject env vars directly.
load_dotenv()


def _env(key: str, default: str | None = None, *, required: bool = False) -> str:
    val = os.environ.get(key, default)
    if required and val is None:
        raise EnvironmentError(f"Required environment variable {key!r} is not set")
    if required and val == "":
        raise EnvironmentError(f"Required environment variable {key!r} is set but empty")
    return val  # type: ignore[return-value]


def _env_float(key: str, default: float) -> float:
    raw = _env(key, str(default))
    try:
        return float(raw)
    except ValueError:
        raise EnvironmentError(f"Environment variable {key!r} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class CalendarConfig:
    default_region: Region = Region.TURKISH
    local_timezone: str = "Europe/Istanbul"
    load_retry_seconds: float = 0.5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> CalendarConfig:
        region_raw = _env("CALENDAR_DEFAULT_REGION", Region.TURKISH.value)
        try:
            region = Region.parse(region_raw)
        except ValueError:
            raise EnvironmentError(
                f"CALENDAR_DEFAULT_REGION {region_raw!r} is not a known region"
            ) from None

        local_tz = _env("CALENDAR_LOCAL_TZ", "Europe/Istanbul")
        if local_tz not in pytz.all_timezones_set:
            raise EnvironmentError(f"CALENDAR_LOCAL_TZ {local_tz!r} is not a known time zone")

        retry = _env_float("CALENDAR_LOAD_RETRY_SECONDS", 0.5)
        if retry < 0:
            raise EnvironmentError("CALENDAR_LOAD_RETRY_SECONDS must not be negative")

        return cls(
            default_region=region,
            local_timezone=local_tz,
            load_retry_seconds=retry,
            log_level=_env("LOG_LEVEL", "INFO"),
        )


def load_config() -> CalendarConfig:
    """Return the calendar configuration from the environment."""
    return CalendarConfig.from_env()

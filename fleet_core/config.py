"""Environment-driven settings for the sheet pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fleet_core.sheets import SPREADSHEET_ID

DEFAULT_REFRESH_INTERVAL_SECONDS = 300.0
DEFAULT_USER_AGENT = "FleetDashboard/1.0"


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped or default


def _get_float_env(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> Optional[float]:
    raw_value = (os.getenv(name) or "").strip()
    if not raw_value:
        return None
    try:
        value = float(raw_value)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str = SPREADSHEET_ID
    # None means requests waits indefinitely.
    http_timeout_seconds: Optional[float] = None
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    user_agent: str = DEFAULT_USER_AGENT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings; call ``get_settings.cache_clear()`` to re-read the environment."""

    refresh = _get_float_env("FLEET_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS)
    if refresh < 0:
        refresh = DEFAULT_REFRESH_INTERVAL_SECONDS
    return Settings(
        spreadsheet_id=_get_str_env("FLEET_SPREADSHEET_ID", SPREADSHEET_ID),
        http_timeout_seconds=_get_optional_float_env("FLEET_HTTP_TIMEOUT_SECONDS"),
        refresh_interval_seconds=refresh,
        user_agent=_get_str_env("FLEET_USER_AGENT", DEFAULT_USER_AGENT),
    )

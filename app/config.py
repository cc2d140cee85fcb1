"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class SheetSettings:
    """
    Spreadsheet source settings.

    ``sheet_url`` may be a Google Sheets edit link, a published CSV link or
    any URL serving gviz JSON / CSV. ``None`` means synthetic data only.
    """

    sheet_url: str | None = None
    cache_ttl_seconds: float = 60.0
    cache_max_entries: int = 32


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for outbound fetches.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class AlertSettings:
    """
    Thresholds for low-fuel warnings and anomaly flags.
    """

    low_fuel_threshold_pct: float = 20.0
    critical_fuel_threshold_pct: float = 10.0
    anomaly_z_threshold: float = 3.0


@dataclass(frozen=True)
class TrendSettings:
    """
    Defaults for the accumulative trend endpoint.
    """

    default_start_month: str = "2025-01"
    default_city_count: int = 8


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Background cache-warming and low-fuel scan schedule.
    """

    enabled: bool = False
    refresh_minutes: int = 5


@lru_cache(maxsize=1)
def get_sheet_settings() -> SheetSettings:
    """
    Return cached spreadsheet settings from environment variables.
    """

    return SheetSettings(
        sheet_url=_get_optional_str_env("SHEET_URL"),
        cache_ttl_seconds=max(0.0, _get_float_env("SHEET_CACHE_TTL_SECONDS", 60.0)),
        cache_max_entries=max(1, _get_int_env("SHEET_CACHE_MAX_ENTRIES", 32)),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_alert_settings() -> AlertSettings:
    """
    Return alert thresholds from environment variables.
    """

    return AlertSettings(
        low_fuel_threshold_pct=_get_float_env("LOW_FUEL_THRESHOLD_PCT", 20.0),
        critical_fuel_threshold_pct=_get_float_env("CRITICAL_FUEL_THRESHOLD_PCT", 10.0),
        anomaly_z_threshold=max(0.0, _get_float_env("ANOMALY_Z_THRESHOLD", 3.0)),
    )


@lru_cache(maxsize=1)
def get_trend_settings() -> TrendSettings:
    """
    Return trend endpoint defaults from environment variables.
    """

    return TrendSettings(
        default_start_month=_get_str_env("TRENDS_DEFAULT_START", "2025-01"),
        default_city_count=max(1, _get_int_env("TRENDS_DEFAULT_CITY_COUNT", 8)),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return scheduler settings from environment variables.
    """

    return SchedulerSettings(
        enabled=_get_bool_env("SCHEDULER_ENABLED", False),
        refresh_minutes=max(1, _get_int_env("SCHEDULER_REFRESH_MINUTES", 5)),
    )

"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _env_int_tuple(name: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(int(item) for item in raw.split(",") if item.strip())


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return int(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    sqlite_timeout_seconds: float
    api_host: str
    api_port: int

    forecast_vacation_months: tuple[int, ...]
    forecast_vacation_rate_band: tuple[int, int]
    forecast_off_season_rate_band: tuple[int, int]
    forecast_random_seed: Optional[int]
    prediction_lookback_weeks: int

    synthetic_random_seed: int
    synthetic_history_days: int
    synthetic_future_days: int
    synthetic_rooms_per_type: tuple[int, int, int]
    synthetic_menu_items: tuple[str, ...]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests clear the cache to reload."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Hotel Analytics"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=Path(os.getenv("DATABASE_PATH", "data/hotel.db")),
        sqlite_timeout_seconds=float(os.getenv("SQLITE_TIMEOUT_SECONDS", "5.0")),
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=int(os.getenv("API_PORT", "8000")),
        forecast_vacation_months=_env_int_tuple(
            "FORECAST_VACATION_MONTHS", (1, 2, 3, 7, 8, 9)
        ),
        forecast_vacation_rate_band=(40, 80),
        forecast_off_season_rate_band=(10, 30),
        forecast_random_seed=_env_optional_int("FORECAST_RANDOM_SEED"),
        prediction_lookback_weeks=int(os.getenv("PREDICTION_LOOKBACK_WEEKS", "4")),
        synthetic_random_seed=int(os.getenv("SYNTHETIC_RANDOM_SEED", "42")),
        synthetic_history_days=int(os.getenv("SYNTHETIC_HISTORY_DAYS", "60")),
        synthetic_future_days=int(os.getenv("SYNTHETIC_FUTURE_DAYS", "30")),
        synthetic_rooms_per_type=(6, 4, 2),
        synthetic_menu_items=(
            "Americano",
            "Club Sandwich",
            "Caesar Salad",
            "Bibimbap",
            "Cheesecake",
            "Draft Beer",
        ),
    )

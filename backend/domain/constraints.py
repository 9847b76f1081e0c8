"""Domain-level validation rules for occupancy forecasting."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ForecastConfig:
    vacation_months: tuple[int, ...]
    vacation_rate_band: tuple[int, int]
    off_season_rate_band: tuple[int, int]
    lookback_weeks: int


def _validate_band(name: str, band: tuple[int, int]) -> None:
    low, high = band
    if not 0 <= low <= 100 or not 0 <= high <= 100:
        raise ValueError(f"{name} bounds must be between 0 and 100")
    if low > high:
        raise ValueError(f"{name} lower bound must not exceed upper bound")


def validate_forecast_config(config: ForecastConfig) -> None:
    for month in config.vacation_months:
        if not 1 <= month <= 12:
            raise ValueError("vacation_months values must be between 1 and 12")
    _validate_band("vacation_rate_band", config.vacation_rate_band)
    _validate_band("off_season_rate_band", config.off_season_rate_band)
    if config.lookback_weeks <= 0:
        raise ValueError("lookback_weeks must be > 0")

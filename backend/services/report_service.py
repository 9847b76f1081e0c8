"""Business logic for occupancy and food & beverage sales reporting."""

from __future__ import annotations

import re
from collections import Counter
from datetime import date, datetime
from threading import RLock
from typing import Callable, Optional

import numpy as np

from backend.domain.constraints import ForecastConfig, validate_forecast_config
from backend.domain.models import (
    CurrentOccupancyRow,
    MenuOrder,
    OccupancyReport,
    RoomOccupancyRow,
    RoomPrediction,
    SalesRow,
    SalesSummary,
)
from backend.repository.data_repository import DataRepository
from backend.services import occupancy_aggregation, sales_aggregation
from backend.services.occupancy_aggregation import RandomSource
from backend.services.report_formatting import (
    FUTURE_OCCUPANCY_PREFIX,
    PAST_OCCUPANCY_PREFIX,
    format_current_occupancy,
    format_occupancy_report,
)
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

_ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


class ReportError(Exception):
    """Base exception for reporting workflow failures."""


class ReportValidationError(ReportError):
    """Raised when incoming report input is invalid."""


class DateParseError(ReportValidationError):
    """Raised when a date is not a strict ``YYYY-MM-DD`` calendar date."""


def parse_report_date(value: str | date) -> date:
    if isinstance(value, datetime):
        raise DateParseError("date must be a calendar date, not a timestamp")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or _ISO_DATE_PATTERN.fullmatch(value) is None:
        raise DateParseError(f"date must follow YYYY-MM-DD format: {value!r}")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise DateParseError(f"date is not a valid calendar date: {value!r}") from exc


class ReportService:
    """Serves every statistics query under one service-wide lock.

    Each public method holds ``_lock`` for its whole body and reads the stores
    through a single repository snapshot, so a query is atomic with respect to
    other queries and never mixes two store states. Aggregation itself is
    delegated to the pure functions in ``sales_aggregation`` and
    ``occupancy_aggregation``.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        random_source: Optional[RandomSource] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._forecast_config = ForecastConfig(
            vacation_months=tuple(self._settings.forecast_vacation_months),
            vacation_rate_band=tuple(self._settings.forecast_vacation_rate_band),
            off_season_rate_band=tuple(self._settings.forecast_off_season_rate_band),
            lookback_weeks=self._settings.prediction_lookback_weeks,
        )
        validate_forecast_config(self._forecast_config)
        self._random_source: RandomSource = random_source or np.random.default_rng(
            self._settings.forecast_random_seed
        )
        self._today_provider = today_provider or date.today
        self._lock = RLock()

    @property
    def forecast_config(self) -> ForecastConfig:
        return self._forecast_config

    def _load_orders(self) -> list[MenuOrder]:
        with self._repository.snapshot() as view:
            return view.find_all_menu_orders()

    # ---- Food & beverage sales ----

    def get_menu_orders_by_date(self) -> dict[date, list[MenuOrder]]:
        with self._lock:
            return sales_aggregation.orders_by_date(self._load_orders())

    def get_menu_sales_count_by_date(self) -> dict[date, Counter[str]]:
        with self._lock:
            grouped = sales_aggregation.orders_by_date(self._load_orders())
            return sales_aggregation.sales_count_by_date(grouped)

    def get_menu_total_sales_by_date(self) -> dict[date, int]:
        with self._lock:
            grouped = sales_aggregation.orders_by_date(self._load_orders())
            return sales_aggregation.total_sales_by_date(grouped)

    def get_average_menu_sales(self, start: str | date, end: str | date) -> float:
        with self._lock:
            start_date, end_date = parse_report_date(start), parse_report_date(end)
            totals = self.get_menu_total_sales_by_date()
            return sales_aggregation.average_sales_in_range(totals, start_date, end_date)

    def get_menu_sales_table(self, start: str | date, end: str | date) -> list[SalesRow]:
        with self._lock:
            return self.get_menu_sales_by_date_range(start, end).rows

    def get_menu_sales_by_date_range(self, start: str | date, end: str | date) -> SalesSummary:
        """Average and per-date table computed from one read of the order store."""
        with self._lock:
            start_date, end_date = parse_report_date(start), parse_report_date(end)
            grouped = sales_aggregation.orders_by_date(self._load_orders())
            totals = sales_aggregation.total_sales_by_date(grouped)
            counts = sales_aggregation.sales_count_by_date(grouped)
            summary = SalesSummary(
                average_sales=sales_aggregation.average_sales_in_range(
                    totals, start_date, end_date
                ),
                rows=sales_aggregation.build_sales_table(totals, counts, start_date, end_date),
            )
            logger.info(
                "Sales report completed | start=%s | end=%s | days=%s | average=%.2f",
                start_date,
                end_date,
                len(summary.rows),
                summary.average_sales,
            )
            return summary

    # ---- Occupancy ----

    def get_past_occupancy(self, start: str | date, end: str | date) -> OccupancyReport:
        with self._lock:
            start_date, end_date = parse_report_date(start), parse_report_date(end)
            with self._repository.snapshot() as view:
                rooms = view.find_all_rooms()
                reservations = view.find_confirmed_reservations_in_period(start_date, end_date)
            report = occupancy_aggregation.compute_past_occupancy(
                rooms, reservations, start_date, end_date
            )
            logger.info(
                "Past occupancy completed | start=%s | end=%s | rooms=%s | reservations=%s | average=%.2f",
                start_date,
                end_date,
                len(rooms),
                len(reservations),
                report.average_rate,
            )
            return report

    def handle_past_occupancy_request(self, start: str | date, end: str | date) -> str:
        with self._lock:
            return format_occupancy_report(
                PAST_OCCUPANCY_PREFIX, self.get_past_occupancy(start, end)
            )

    def get_past_occupancy_report(
        self,
        start: str | date,
        end: str | date,
    ) -> list[RoomOccupancyRow]:
        with self._lock:
            start_date, end_date = parse_report_date(start), parse_report_date(end)
            with self._repository.snapshot() as view:
                rooms = view.find_all_rooms()
                reservations = view.find_confirmed_reservations_in_period(start_date, end_date)
            return occupancy_aggregation.compute_room_occupancy(
                rooms, reservations, start_date, end_date
            )

    def get_current_occupancy_report(self) -> list[CurrentOccupancyRow]:
        with self._lock:
            today = self._today_provider()
            with self._repository.snapshot() as view:
                reservations = view.find_confirmed_reservations_today(today)
            rows = occupancy_aggregation.list_current_occupancy(reservations, today)
            logger.info(
                "Current occupancy completed | today=%s | stays=%s",
                today,
                len(rows),
            )
            return rows

    def handle_current_occupancy_request(self) -> str:
        with self._lock:
            return format_current_occupancy(self.get_current_occupancy_report())

    def get_future_occupancy(self, start: str | date, end: str | date) -> OccupancyReport:
        with self._lock:
            start_date, end_date = parse_report_date(start), parse_report_date(end)
            with self._repository.snapshot() as view:
                rooms = view.find_all_rooms()
                reservations = view.find_confirmed_reservations_in_period(start_date, end_date)
            report = occupancy_aggregation.compute_future_occupancy(
                rooms,
                reservations,
                start_date,
                end_date,
                random_source=self._random_source,
                config=self._forecast_config,
            )
            logger.info(
                "Future occupancy completed | start=%s | end=%s | rooms=%s | reservations=%s | average=%.2f",
                start_date,
                end_date,
                len(rooms),
                len(reservations),
                report.average_rate,
            )
            return report

    def handle_future_occupancy_request(self, start: str | date, end: str | date) -> str:
        with self._lock:
            return format_occupancy_report(
                FUTURE_OCCUPANCY_PREFIX, self.get_future_occupancy(start, end)
            )

    def get_future_occupancy_prediction(self, target_date: str | date) -> list[RoomPrediction]:
        with self._lock:
            target = parse_report_date(target_date)
            with self._repository.snapshot() as view:
                rooms = view.find_all_rooms()
                reservations = view.find_all_reservations()
            predictions = occupancy_aggregation.predict_room_occupancy(
                rooms,
                reservations,
                target,
                lookback_weeks=self._forecast_config.lookback_weeks,
            )
            logger.info(
                "Weekday prediction completed | target_date=%s | rooms=%s",
                target,
                len(predictions),
            )
            return predictions

"""Pure occupancy aggregation: history, current stays, forecasts and predictions.

Every function takes immutable store snapshots and returns fresh report
objects. Nothing here reads a store or holds a lock; orchestration lives in
``report_service``.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Any, Iterable, Protocol, Sequence

from backend.domain.constraints import ForecastConfig
from backend.domain.models import (
    ROOM_TYPE_DELUXE,
    ROOM_TYPE_STANDARD,
    ROOM_TYPE_SUITE,
    CurrentOccupancyRow,
    OccupancyReport,
    OccupancyRow,
    Reservation,
    Room,
    RoomOccupancyRow,
    RoomPrediction,
    RoomTypeTotals,
)
from backend.services.sales_aggregation import iter_dates


class RandomSource(Protocol):
    """Subset of ``numpy.random.Generator`` used by the forecaster.

    ``integers(low, high)`` draws uniformly from ``[low, high)``.
    """

    def integers(self, low: int, high: int) -> Any: ...


def count_rooms_by_type(rooms: Iterable[Room]) -> RoomTypeTotals:
    counts = Counter(room.room_type for room in rooms)
    return RoomTypeTotals(
        standard=counts[ROOM_TYPE_STANDARD],
        deluxe=counts[ROOM_TYPE_DELUXE],
        suite=counts[ROOM_TYPE_SUITE],
    )


def _rate(occupied: int, total: int) -> float:
    return occupied * 100.0 / total if total > 0 else 0.0


def occupied_rooms_by_type(
    room_types: dict[str, str],
    reservations: Iterable[Reservation],
    day: date,
) -> Counter[str]:
    """Distinct rooms per type held by a confirmed stay on ``day``.

    Reservations on rooms missing from ``room_types`` are ignored.
    """
    occupied: set[str] = {
        reservation.room_number
        for reservation in reservations
        if reservation.is_confirmed
        and reservation.covers(day)
        and reservation.room_number in room_types
    }
    return Counter(room_types[room_number] for room_number in occupied)


def _actual_row(day: date, occupied: Counter[str], totals: RoomTypeTotals) -> OccupancyRow:
    # The daily average is a rate over all rooms, not a mean of the type rates.
    return OccupancyRow(
        date=day,
        standard_rate=_rate(occupied[ROOM_TYPE_STANDARD], totals.standard),
        deluxe_rate=_rate(occupied[ROOM_TYPE_DELUXE], totals.deluxe),
        suite_rate=_rate(occupied[ROOM_TYPE_SUITE], totals.suite),
        average_rate=_rate(sum(occupied.values()), totals.total),
    )


def _period_average(rows: Sequence[OccupancyRow]) -> float:
    if not rows:
        return 0.0
    return sum(row.average_rate for row in rows) / len(rows)


def compute_past_occupancy(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    start: date,
    end: date,
) -> OccupancyReport:
    totals = count_rooms_by_type(rooms)
    room_types = {room.room_number: room.room_type for room in rooms}
    rows = [
        _actual_row(day, occupied_rooms_by_type(room_types, reservations, day), totals)
        for day in iter_dates(start, end)
    ]
    return OccupancyReport(average_rate=_period_average(rows), rows=rows)


def overlap_days(reservation: Reservation, start: date, end: date) -> int:
    """Number of dates shared by the stay and ``[start, end]``, both inclusive."""
    overlap_start = max(reservation.check_in_date, start)
    overlap_end = min(reservation.check_out_date, end)
    if overlap_start > overlap_end:
        return 0
    return (overlap_end - overlap_start).days + 1


def compute_room_occupancy(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    start: date,
    end: date,
) -> list[RoomOccupancyRow]:
    total_days = max((end - start).days + 1, 0)
    report: list[RoomOccupancyRow] = []
    for room in rooms:
        reserved_days = sum(
            overlap_days(reservation, start, end)
            for reservation in reservations
            if reservation.is_confirmed and reservation.room_number == room.room_number
        )
        rate = min(reserved_days * 100.0 / total_days, 100.0) if total_days > 0 else 0.0
        report.append(
            RoomOccupancyRow(
                room_number=room.room_number,
                total_days=total_days,
                reserved_days=reserved_days,
                occupancy_rate=rate,
            )
        )
    return report


def list_current_occupancy(
    reservations: Iterable[Reservation],
    today: date,
) -> list[CurrentOccupancyRow]:
    return [
        CurrentOccupancyRow(
            room_number=reservation.room_number,
            reservation_id=reservation.reservation_id,
            check_in=reservation.check_in_date,
            check_out=reservation.check_out_date,
            guest_num=reservation.guest_num,
        )
        for reservation in reservations
        if reservation.is_confirmed and reservation.covers(today)
    ]


def _draw_rate(random_source: RandomSource, band: tuple[int, int], room_count: int) -> float:
    if room_count <= 0:
        return 0.0
    low, high = band
    return float(int(random_source.integers(low, high + 1)))


def _synthetic_row(
    day: date,
    totals: RoomTypeTotals,
    random_source: RandomSource,
    config: ForecastConfig,
) -> OccupancyRow:
    band = (
        config.vacation_rate_band
        if day.month in config.vacation_months
        else config.off_season_rate_band
    )
    standard_rate = _draw_rate(random_source, band, totals.standard)
    deluxe_rate = _draw_rate(random_source, band, totals.deluxe)
    suite_rate = _draw_rate(random_source, band, totals.suite)
    if totals.total > 0:
        average_rate = (
            standard_rate * totals.standard
            + deluxe_rate * totals.deluxe
            + suite_rate * totals.suite
        ) / totals.total
    else:
        average_rate = 0.0
    return OccupancyRow(
        date=day,
        standard_rate=standard_rate,
        deluxe_rate=deluxe_rate,
        suite_rate=suite_rate,
        average_rate=average_rate,
    )


def compute_future_occupancy(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    start: date,
    end: date,
    random_source: RandomSource,
    config: ForecastConfig,
) -> OccupancyReport:
    """Actual rates on booked dates, seasonal placeholder rates elsewhere.

    The switch is per date: one confirmed stay on any known room makes the
    whole date use actual counts for every type.
    """
    totals = count_rooms_by_type(rooms)
    room_types = {room.room_number: room.room_type for room in rooms}
    rows: list[OccupancyRow] = []
    for day in iter_dates(start, end):
        occupied = occupied_rooms_by_type(room_types, reservations, day)
        if occupied:
            rows.append(_actual_row(day, occupied, totals))
        else:
            rows.append(_synthetic_row(day, totals, random_source, config))
    return OccupancyReport(average_rate=_period_average(rows), rows=rows)


def predict_room_occupancy(
    rooms: Sequence[Room],
    reservations: Sequence[Reservation],
    target_date: date,
    lookback_weeks: int = 4,
) -> list[RoomPrediction]:
    """Share of the same weekday over the prior weeks each room was booked."""
    past_dates = [target_date - timedelta(weeks=week) for week in range(1, lookback_weeks + 1)]
    confirmed = [reservation for reservation in reservations if reservation.is_confirmed]
    predictions: list[RoomPrediction] = []
    for room in rooms:
        stays = [reservation for reservation in confirmed if reservation.room_number == room.room_number]
        booked = sum(1 for day in past_dates if any(stay.covers(day) for stay in stays))
        predictions.append(
            RoomPrediction(
                room_number=room.room_number,
                predicted_rate=booked / lookback_weeks * 100.0,
            )
        )
    return predictions

"""Wire rendering of occupancy reports for line-oriented clients."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from backend.domain.models import CurrentOccupancyRow, OccupancyReport, OccupancyRow


PAST_OCCUPANCY_PREFIX = "PAST_OCCUPANCY"
CURRENT_OCCUPANCY_PREFIX = "CURRENT_OCCUPANCY"
FUTURE_OCCUPANCY_PREFIX = "FUTURE_OCCUPANCY"

ROW_SEPARATOR = ";"
FIELD_SEPARATOR = ","
HEADER_SEPARATOR = "|"

_TWO_PLACES = Decimal("0.01")


def format_percent(value: float) -> str:
    """Two decimals, half-up on the shortest decimal form (3.125 -> "3.13")."""
    return str(Decimal(repr(float(value))).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def format_occupancy_row(row: OccupancyRow) -> str:
    return FIELD_SEPARATOR.join(
        [
            row.date.isoformat(),
            format_percent(row.standard_rate),
            format_percent(row.deluxe_rate),
            format_percent(row.suite_rate),
            format_percent(row.average_rate),
        ]
    )


def format_occupancy_report(prefix: str, report: OccupancyReport) -> str:
    rows = ROW_SEPARATOR.join(format_occupancy_row(row) for row in report.rows)
    return f"{prefix}:{format_percent(report.average_rate)}{HEADER_SEPARATOR}{rows}"


def format_current_occupancy(rows: Iterable[CurrentOccupancyRow]) -> str:
    body = ROW_SEPARATOR.join(
        FIELD_SEPARATOR.join(
            [
                row.room_number,
                row.reservation_id,
                row.check_in.isoformat(),
                row.check_out.isoformat(),
                str(row.guest_num),
            ]
        )
        for row in rows
    )
    return f"{CURRENT_OCCUPANCY_PREFIX}:{body}"

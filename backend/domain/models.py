"""Domain models for occupancy and food & beverage sales reporting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


ROOM_TYPE_STANDARD = "Standard"
ROOM_TYPE_DELUXE = "Deluxe"
ROOM_TYPE_SUITE = "Suite"
ROOM_TYPES = (ROOM_TYPE_STANDARD, ROOM_TYPE_DELUXE, ROOM_TYPE_SUITE)

RESERVATION_STATUS_CONFIRMED = "Confirmed"

NO_TOP_MENU = "-"


@dataclass(frozen=True)
class Room:
    room_number: str
    room_type: str


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    room_number: str
    check_in_date: date
    check_out_date: date
    guest_num: int
    status: str

    @property
    def is_confirmed(self) -> bool:
        return self.status.lower() == RESERVATION_STATUS_CONFIRMED.lower()

    def covers(self, day: date) -> bool:
        """Both stay boundaries are occupied nights."""
        return self.check_in_date <= day <= self.check_out_date


@dataclass(frozen=True)
class MenuOrder:
    order_time: datetime
    food_names: tuple[str, ...]
    total_price: int


@dataclass(frozen=True)
class RoomTypeTotals:
    standard: int
    deluxe: int
    suite: int

    @property
    def total(self) -> int:
        return self.standard + self.deluxe + self.suite


@dataclass(frozen=True)
class SalesRow:
    date: date
    total_sales: int
    top_menu: str

    def to_dict(self) -> dict[str, str | int]:
        return {
            "date": self.date.isoformat(),
            "total_sales": self.total_sales,
            "top_menu": self.top_menu,
        }


@dataclass(frozen=True)
class SalesSummary:
    average_sales: float
    rows: list[SalesRow]


@dataclass(frozen=True)
class OccupancyRow:
    date: date
    standard_rate: float
    deluxe_rate: float
    suite_rate: float
    average_rate: float


@dataclass(frozen=True)
class OccupancyReport:
    average_rate: float
    rows: list[OccupancyRow]


@dataclass(frozen=True)
class RoomOccupancyRow:
    room_number: str
    total_days: int
    reserved_days: int
    occupancy_rate: float


@dataclass(frozen=True)
class CurrentOccupancyRow:
    room_number: str
    reservation_id: str
    check_in: date
    check_out: date
    guest_num: int


@dataclass(frozen=True)
class RoomPrediction:
    room_number: str
    predicted_rate: float

"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import random
import sqlite3
from contextlib import closing, contextmanager
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence

from backend.domain.models import (
    RESERVATION_STATUS_CONFIRMED,
    ROOM_TYPES,
    MenuOrder,
    Reservation,
    Room,
)
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class StoreError(RuntimeError):
    """Raised when a store read or write fails at the storage layer."""


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(room_number=str(row["room_number"]), room_type=str(row["room_type"]))


def _row_to_reservation(row: sqlite3.Row) -> Reservation:
    return Reservation(
        reservation_id=str(row["reservation_id"]),
        room_number=str(row["room_number"]),
        check_in_date=date.fromisoformat(str(row["check_in_date"])),
        check_out_date=date.fromisoformat(str(row["check_out_date"])),
        guest_num=int(row["guest_num"]),
        status=str(row["status"]),
    )


def _row_to_menu_order(row: sqlite3.Row) -> MenuOrder:
    return MenuOrder(
        order_time=datetime.fromisoformat(str(row["order_time"])),
        food_names=tuple(json.loads(row["food_names"])),
        total_price=int(row["total_price"]),
    )


class StoreSnapshot:
    """Read-only finders bound to one open read transaction.

    Every finder called on the same snapshot sees the same committed state,
    regardless of writes committed by other connections meanwhile.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self._connection.execute(query, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            logger.exception("Store read failed")
            raise StoreError(f"Store read failed: {exc}") from exc

    def find_all_rooms(self) -> list[Room]:
        rows = self._fetch_all(
            "SELECT room_number, room_type FROM Rooms ORDER BY rowid ASC;"
        )
        return [_row_to_room(row) for row in rows]

    def find_confirmed_reservations_in_period(self, start: date, end: date) -> list[Reservation]:
        """Confirmed reservations whose stay intersects the inclusive range."""
        rows = self._fetch_all(
            """
            SELECT reservation_id, room_number, check_in_date, check_out_date,
                   guest_num, status
            FROM Reservations
            WHERE LOWER(status) = ?
              AND check_in_date <= ?
              AND check_out_date >= ?
            ORDER BY rowid ASC;
            """,
            (RESERVATION_STATUS_CONFIRMED.lower(), end.isoformat(), start.isoformat()),
        )
        return [_row_to_reservation(row) for row in rows]

    def find_confirmed_reservations_today(self, today: date) -> list[Reservation]:
        return self.find_confirmed_reservations_in_period(today, today)

    def find_all_reservations(self) -> list[Reservation]:
        rows = self._fetch_all(
            """
            SELECT reservation_id, room_number, check_in_date, check_out_date,
                   guest_num, status
            FROM Reservations
            ORDER BY rowid ASC;
            """
        )
        return [_row_to_reservation(row) for row in rows]

    def find_all_menu_orders(self) -> list[MenuOrder]:
        rows = self._fetch_all(
            "SELECT order_time, food_names, total_price FROM MenuOrders ORDER BY id ASC;"
        )
        return [_row_to_menu_order(row) for row in rows]


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly below.
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.sqlite_timeout_seconds,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(self._connect()) as conn:
                conn.execute("BEGIN IMMEDIATE;")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK;")
                    raise
                conn.execute("COMMIT;")
        except sqlite3.Error as exc:
            logger.exception("Store write failed")
            raise StoreError(f"Store write failed: {exc}") from exc

    @contextmanager
    def snapshot(self) -> Iterator[StoreSnapshot]:
        """Open one read transaction spanning several finder calls."""
        try:
            connection = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Store connection failed: {exc}") from exc
        with closing(connection) as conn:
            try:
                conn.execute("BEGIN;")
                # Pin the read snapshot before any finder runs.
                conn.execute("SELECT COUNT(*) FROM sqlite_master;").fetchone()
            except sqlite3.Error as exc:
                raise StoreError(f"Store snapshot failed: {exc}") from exc
            try:
                yield StoreSnapshot(conn)
            finally:
                try:
                    conn.execute("ROLLBACK;")
                except sqlite3.Error as exc:
                    logger.exception("Store snapshot release failed")
                    raise StoreError(f"Store snapshot release failed: {exc}") from exc

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with closing(self._connect()) as conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        room_number TEXT PRIMARY KEY,
                        room_type TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS Reservations (
                        reservation_id TEXT PRIMARY KEY,
                        room_number TEXT NOT NULL,
                        check_in_date TEXT NOT NULL,
                        check_out_date TEXT NOT NULL,
                        guest_num INTEGER NOT NULL CHECK (guest_num >= 0),
                        status TEXT NOT NULL,
                        FOREIGN KEY (room_number) REFERENCES Rooms(room_number)
                    );

                    CREATE TABLE IF NOT EXISTS MenuOrders (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        order_time TEXT NOT NULL,
                        food_names TEXT NOT NULL,
                        total_price INTEGER NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_reservations_status_dates
                    ON Reservations(status, check_in_date, check_out_date);

                    CREATE INDEX IF NOT EXISTS idx_menu_orders_time
                    ON MenuOrders(order_time);
                    """
                )
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Database initialization failed: {exc}") from exc

    # Single-call reads, each atomic on its own.

    def find_all_rooms(self) -> list[Room]:
        with self.snapshot() as view:
            return view.find_all_rooms()

    def find_confirmed_reservations_in_period(self, start: date, end: date) -> list[Reservation]:
        with self.snapshot() as view:
            return view.find_confirmed_reservations_in_period(start, end)

    def find_confirmed_reservations_today(self, today: date) -> list[Reservation]:
        with self.snapshot() as view:
            return view.find_confirmed_reservations_today(today)

    def find_all_reservations(self) -> list[Reservation]:
        with self.snapshot() as view:
            return view.find_all_reservations()

    def find_all_menu_orders(self) -> list[MenuOrder]:
        with self.snapshot() as view:
            return view.find_all_menu_orders()

    def add_room(self, room: Room) -> None:
        if room.room_type not in ROOM_TYPES:
            raise ValueError(f"Unknown room type: {room.room_type}")
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO Rooms (room_number, room_type) VALUES (?, ?);",
                (room.room_number, room.room_type),
            )

    def create_reservation(self, reservation: Reservation) -> None:
        if reservation.check_out_date < reservation.check_in_date:
            raise ValueError("check_out_date must not precede check_in_date")
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO Reservations (
                    reservation_id, room_number, check_in_date,
                    check_out_date, guest_num, status
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    reservation.reservation_id,
                    reservation.room_number,
                    reservation.check_in_date.isoformat(),
                    reservation.check_out_date.isoformat(),
                    reservation.guest_num,
                    reservation.status,
                ),
            )

    def update_reservation_status(self, reservation_id: str, status: str) -> bool:
        """Return False when no reservation carries the given id."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE Reservations SET status = ? WHERE reservation_id = ?;",
                (status, reservation_id),
            )
            return cursor.rowcount > 0

    def save_menu_order(self, order: MenuOrder) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO MenuOrders (order_time, food_names, total_price)
                VALUES (?, ?, ?);
                """,
                (
                    order.order_time.isoformat(timespec="seconds"),
                    json.dumps(list(order.food_names)),
                    order.total_price,
                ),
            )
            return int(cursor.lastrowid)

    def count_rooms(self) -> int:
        with self.snapshot() as view:
            return len(view.find_all_rooms())

    def seed_synthetic_data(self) -> None:
        """Seed deterministic demo rooms, stays and orders when the store is empty."""
        if self.count_rooms() > 0:
            logger.info("Synthetic data already present; skipping seed")
            return

        rng = random.Random(self._settings.synthetic_random_seed)
        rooms: list[Room] = []
        for floor, (room_type, count) in enumerate(
            zip(ROOM_TYPES, self._settings.synthetic_rooms_per_type),
            start=1,
        ):
            rooms.extend(
                Room(room_number=f"{floor}{index:02d}", room_type=room_type)
                for index in range(1, count + 1)
            )

        today = datetime.now(timezone.utc).date()
        window_start = today - timedelta(days=self._settings.synthetic_history_days)
        window_end = today + timedelta(days=self._settings.synthetic_future_days)

        reservations: list[tuple[str, str, str, str, int, str]] = []
        for room in rooms:
            cursor_day = window_start + timedelta(days=rng.randint(0, 3))
            while cursor_day <= window_end:
                nights = rng.randint(1, 4)
                check_out = cursor_day + timedelta(days=nights - 1)
                status = rng.choices(
                    [RESERVATION_STATUS_CONFIRMED, "Pending", "Cancelled"],
                    weights=[0.8, 0.1, 0.1],
                )[0]
                reservations.append(
                    (
                        f"R{len(reservations) + 1:05d}",
                        room.room_number,
                        cursor_day.isoformat(),
                        check_out.isoformat(),
                        rng.randint(1, 4),
                        status,
                    )
                )
                cursor_day = check_out + timedelta(days=rng.randint(1, 6))

        menu_items = self._settings.synthetic_menu_items
        prices = {name: 4000 + 1500 * index for index, name in enumerate(menu_items)}
        orders: list[tuple[str, str, int]] = []
        for offset in range(self._settings.synthetic_history_days + 1):
            order_day = window_start + timedelta(days=offset)
            for _ in range(rng.randint(0, 5)):
                food_names = rng.choices(menu_items, k=rng.randint(1, 3))
                order_time = datetime.combine(
                    order_day,
                    time(hour=rng.randint(7, 22), minute=rng.randint(0, 59)),
                )
                orders.append(
                    (
                        order_time.isoformat(timespec="seconds"),
                        json.dumps(food_names),
                        sum(prices[name] for name in food_names),
                    )
                )

        with self._transaction() as conn:
            conn.executemany(
                "INSERT INTO Rooms (room_number, room_type) VALUES (?, ?);",
                [(room.room_number, room.room_type) for room in rooms],
            )
            conn.executemany(
                """
                INSERT INTO Reservations (
                    reservation_id, room_number, check_in_date,
                    check_out_date, guest_num, status
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                reservations,
            )
            conn.executemany(
                """
                INSERT INTO MenuOrders (order_time, food_names, total_price)
                VALUES (?, ?, ?);
                """,
                orders,
            )
        logger.info(
            "Synthetic seed completed | rooms=%s | reservations=%s | orders=%s",
            len(rooms),
            len(reservations),
            len(orders),
        )

"""Concurrent-access guarantees of the report service.

Queries run one at a time under the service lock, and every query reads the
stores through one snapshot, so a write landing mid-query is never visible
to that query.
"""

from __future__ import annotations

import itertools
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime

from backend.domain.models import MenuOrder, Reservation, Room
from backend.repository.data_repository import DataRepository
from backend.services.report_service import ReportService
from backend.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    base = get_settings()
    return replace(base, database_path=tmp_path / filename)


def _seed_rooms(repository: DataRepository) -> None:
    repository.initialize_database()
    for number, room_type in (("101", "Standard"), ("102", "Standard"), ("201", "Deluxe")):
        repository.add_room(Room(room_number=number, room_type=room_type))


class _HookedView:
    """Delegates to a real snapshot and fires a callback after the first read."""

    def __init__(self, view, after_first_read) -> None:
        self._view = view
        self._after_first_read = after_first_read
        self._fired = False

    def __getattr__(self, name):
        finder = getattr(self._view, name)

        def wrapper(*args, **kwargs):
            result = finder(*args, **kwargs)
            if not self._fired:
                self._fired = True
                self._after_first_read()
            return result

        return wrapper


class InterleavingRepository(DataRepository):
    """Starts a concurrent write between the reads of a query."""

    def __init__(self, settings, concurrent_write) -> None:
        super().__init__(settings)
        self._concurrent_write = concurrent_write
        self.writer: threading.Thread | None = None
        self.armed = False

    def _start_writer(self) -> None:
        if not self.armed:
            return
        self.armed = False
        self.writer = threading.Thread(target=self._concurrent_write)
        self.writer.start()
        # Give the writer time to commit if the storage engine lets it.
        self.writer.join(timeout=0.5)

    @contextmanager
    def snapshot(self):
        with super().snapshot() as view:
            yield _HookedView(view, self._start_writer)


def test_query_does_not_observe_write_made_while_it_runs(tmp_path):
    settings = _build_test_settings(tmp_path, "interleave.db")
    writer_repository = DataRepository(settings)

    def book_every_room() -> None:
        for index, number in enumerate(("101", "102", "201"), start=1):
            writer_repository.create_reservation(
                Reservation(
                    reservation_id=f"W{index}",
                    room_number=number,
                    check_in_date=date(2024, 5, 1),
                    check_out_date=date(2024, 5, 3),
                    guest_num=2,
                    status="Confirmed",
                )
            )

    repository = InterleavingRepository(settings, book_every_room)
    _seed_rooms(repository)
    service = ReportService(repository=repository, settings=settings)

    repository.armed = True
    during = service.handle_past_occupancy_request("2024-05-01", "2024-05-03")
    repository.writer.join(timeout=10)
    after = service.handle_past_occupancy_request("2024-05-01", "2024-05-03")

    assert during == (
        "PAST_OCCUPANCY:0.00|"
        "2024-05-01,0.00,0.00,0.00,0.00;"
        "2024-05-02,0.00,0.00,0.00,0.00;"
        "2024-05-03,0.00,0.00,0.00,0.00"
    )
    assert after.startswith("PAST_OCCUPANCY:100.00|")


class _RecordingView:
    def __init__(self, view, token: int, record) -> None:
        self._view = view
        self._token = token
        self._record = record

    def __getattr__(self, name):
        finder = getattr(self._view, name)

        def wrapper(*args, **kwargs):
            self._record(("read", self._token, name))
            time.sleep(0.01)
            return finder(*args, **kwargs)

        return wrapper


class RecordingRepository(DataRepository):
    """Logs the begin, reads and end of every snapshot across threads."""

    def __init__(self, settings) -> None:
        super().__init__(settings)
        self.events: list[tuple] = []
        self._events_lock = threading.Lock()
        self._tokens = itertools.count(1)

    def _record(self, event: tuple) -> None:
        with self._events_lock:
            self.events.append(event)

    @contextmanager
    def snapshot(self):
        token = next(self._tokens)
        self._record(("begin", token))
        with super().snapshot() as view:
            yield _RecordingView(view, token, self._record)
            time.sleep(0.01)
        self._record(("end", token))


def test_overlapping_queries_never_interleave(tmp_path):
    settings = _build_test_settings(tmp_path, "serialized.db")
    repository = RecordingRepository(settings)
    _seed_rooms(repository)
    repository.save_menu_order(MenuOrder(datetime(2024, 5, 2, 12, 0), ("Americano",), 4000))
    service = ReportService(repository=repository, settings=settings)
    repository.events.clear()

    queries = [
        lambda: service.handle_past_occupancy_request("2024-05-01", "2024-05-07"),
        lambda: service.handle_future_occupancy_request("2024-05-01", "2024-05-07"),
        lambda: service.get_menu_sales_by_date_range("2024-05-01", "2024-05-07"),
        lambda: service.get_future_occupancy_prediction("2024-05-29"),
        lambda: service.get_past_occupancy_report("2024-05-01", "2024-05-07"),
    ] * 4

    with ThreadPoolExecutor(max_workers=8) as executor:
        for future in [executor.submit(query) for query in queries]:
            future.result()

    open_token = None
    completed = 0
    for event in repository.events:
        kind, token = event[0], event[1]
        if kind == "begin":
            assert open_token is None, f"snapshot {token} began inside {open_token}"
            open_token = token
        else:
            assert token == open_token, f"{event} observed inside snapshot {open_token}"
            if kind == "end":
                open_token = None
                completed += 1
    assert open_token is None
    assert completed == len(queries)

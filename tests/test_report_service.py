from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from backend.domain.models import MenuOrder, Reservation, Room
from backend.repository.data_repository import DataRepository, StoreError
from backend.services.report_service import DateParseError, ReportService
from backend.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    base = get_settings()
    return replace(base, database_path=tmp_path / filename)


def _build_repository(tmp_path, filename: str) -> DataRepository:
    repository = DataRepository(_build_test_settings(tmp_path, filename))
    repository.initialize_database()
    for number, room_type in (("101", "Standard"), ("102", "Standard"), ("201", "Deluxe")):
        repository.add_room(Room(room_number=number, room_type=room_type))
    return repository


def _reserve(
    repository: DataRepository,
    reservation_id: str,
    room_number: str,
    check_in: str,
    check_out: str,
    status: str = "Confirmed",
    guest_num: int = 2,
) -> None:
    repository.create_reservation(
        Reservation(
            reservation_id=reservation_id,
            room_number=room_number,
            check_in_date=date.fromisoformat(check_in),
            check_out_date=date.fromisoformat(check_out),
            guest_num=guest_num,
            status=status,
        )
    )


class FixedRandomSource:
    def __init__(self, value: int) -> None:
        self._value = value

    def integers(self, low: int, high: int) -> int:
        return self._value


def _service(repository: DataRepository, **kwargs) -> ReportService:
    settings = _build_test_settings(repository.database_path.parent, repository.database_path.name)
    return ReportService(repository=repository, settings=settings, **kwargs)


def test_past_occupancy_wire_response(tmp_path):
    repository = _build_repository(tmp_path, "past.db")
    _reserve(repository, "R1", "101", "2024-05-01", "2024-05-03")
    service = _service(repository)

    response = service.handle_past_occupancy_request("2024-05-01", "2024-05-03")

    assert response == (
        "PAST_OCCUPANCY:33.33|"
        "2024-05-01,50.00,0.00,0.00,33.33;"
        "2024-05-02,50.00,0.00,0.00,33.33;"
        "2024-05-03,50.00,0.00,0.00,33.33"
    )


def test_past_occupancy_only_counts_confirmed_stays(tmp_path):
    repository = _build_repository(tmp_path, "past_status.db")
    _reserve(repository, "R1", "101", "2024-05-01", "2024-05-01", status="Cancelled")
    _reserve(repository, "R2", "201", "2024-04-25", "2024-05-01", status="CONFIRMED")
    service = _service(repository)

    report = service.get_past_occupancy("2024-05-01", "2024-05-01")

    assert report.rows[0].standard_rate == 0.0
    assert report.rows[0].deluxe_rate == 100.0


def test_status_update_changes_occupancy(tmp_path):
    repository = _build_repository(tmp_path, "status_update.db")
    _reserve(repository, "R1", "101", "2024-05-01", "2024-05-01", status="Pending")
    service = _service(repository)

    assert service.get_past_occupancy("2024-05-01", "2024-05-01").rows[0].standard_rate == 0.0
    assert repository.update_reservation_status("R1", "Confirmed") is True
    assert service.get_past_occupancy("2024-05-01", "2024-05-01").rows[0].standard_rate == 50.0
    assert repository.update_reservation_status("R404", "Confirmed") is False


@pytest.mark.parametrize("bad_date", ["2024-5-1", "20240501", "2024-02-30", "", "2024-05-01T00:00"])
def test_malformed_dates_are_rejected(tmp_path, bad_date):
    service = _service(_build_repository(tmp_path, "bad_date.db"))

    with pytest.raises(DateParseError):
        service.handle_past_occupancy_request(bad_date, "2024-05-03")
    with pytest.raises(DateParseError):
        service.get_menu_sales_by_date_range("2024-05-01", bad_date)


def test_store_failure_aborts_request(tmp_path):
    settings = _build_test_settings(tmp_path, "uninitialized.db")
    service = ReportService(repository=DataRepository(settings), settings=settings)

    with pytest.raises(StoreError):
        service.get_past_occupancy("2024-05-01", "2024-05-03")


def test_past_room_occupancy_report(tmp_path):
    repository = _build_repository(tmp_path, "rooms.db")
    _reserve(repository, "R1", "101", "2024-04-28", "2024-05-02")
    _reserve(repository, "R2", "101", "2024-05-09", "2024-05-15")
    service = _service(repository)

    report = service.get_past_occupancy_report("2024-05-01", "2024-05-10")

    assert [(row.room_number, row.reserved_days, row.occupancy_rate) for row in report] == [
        ("101", 4, 40.0),
        ("102", 0, 0.0),
        ("201", 0, 0.0),
    ]


def test_current_occupancy_uses_injected_today(tmp_path):
    repository = _build_repository(tmp_path, "current.db")
    _reserve(repository, "R1", "101", "2024-05-01", "2024-05-03", guest_num=3)
    _reserve(repository, "R2", "102", "2024-05-04", "2024-05-06")
    service = _service(repository, today_provider=lambda: date(2024, 5, 3))

    assert service.handle_current_occupancy_request() == (
        "CURRENT_OCCUPANCY:101,R1,2024-05-01,2024-05-03,3"
    )


def test_future_occupancy_wire_response(tmp_path):
    repository = _build_repository(tmp_path, "future.db")
    _reserve(repository, "R1", "201", "2024-05-02", "2024-05-02")
    service = _service(repository, random_source=FixedRandomSource(25))

    response = service.handle_future_occupancy_request("2024-05-01", "2024-05-02")

    # 25.00 placeholder day, then one deluxe room of three rooms booked.
    assert response == (
        "FUTURE_OCCUPANCY:29.17|"
        "2024-05-01,25.00,25.00,0.00,25.00;"
        "2024-05-02,0.00,100.00,0.00,33.33"
    )


def test_future_occupancy_prediction(tmp_path):
    repository = _build_repository(tmp_path, "prediction.db")
    _reserve(repository, "R1", "101", "2024-05-14", "2024-05-16")
    _reserve(repository, "R2", "101", "2024-05-22", "2024-05-22", status="Cancelled")
    service = _service(repository)

    predictions = service.get_future_occupancy_prediction("2024-05-29")

    assert [(row.room_number, row.predicted_rate) for row in predictions] == [
        ("101", 25.0),
        ("102", 0.0),
        ("201", 0.0),
    ]


def test_menu_sales_by_date_range(tmp_path):
    repository = _build_repository(tmp_path, "sales.db")
    repository.save_menu_order(
        MenuOrder(datetime(2024, 6, 11, 9, 30), ("Americano", "Cheesecake"), 3000)
    )
    repository.save_menu_order(MenuOrder(datetime(2024, 6, 11, 20, 0), ("Americano",), 2000))
    service = _service(repository)

    summary = service.get_menu_sales_by_date_range("2024-06-10", "2024-06-12")

    assert summary.average_sales == 5000.0
    assert [row.to_dict() for row in summary.rows] == [
        {"date": "2024-06-10", "total_sales": 0, "top_menu": "-"},
        {"date": "2024-06-11", "total_sales": 5000, "top_menu": "Americano"},
        {"date": "2024-06-12", "total_sales": 0, "top_menu": "-"},
    ]
    assert service.get_average_menu_sales("2024-06-10", "2024-06-12") == 5000.0
    assert service.get_menu_sales_table("2024-06-10", "2024-06-12") == summary.rows


def test_menu_sales_lookups_by_date(tmp_path):
    repository = _build_repository(tmp_path, "sales_lookup.db")
    repository.save_menu_order(
        MenuOrder(datetime(2024, 6, 11, 9, 30), ("Bibimbap", "Bibimbap"), 5000)
    )
    service = _service(repository)

    assert list(service.get_menu_orders_by_date()) == [date(2024, 6, 11)]
    assert service.get_menu_sales_count_by_date() == {date(2024, 6, 11): {"Bibimbap": 2}}
    assert service.get_menu_total_sales_by_date() == {date(2024, 6, 11): 5000}


def test_seeded_data_produces_bounded_reports(tmp_path):
    settings = _build_test_settings(tmp_path, "seeded.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    repository.seed_synthetic_data()
    repository.seed_synthetic_data()
    service = ReportService(repository=repository, settings=settings)

    today = date.today()
    start = date.fromordinal(today.toordinal() - 14).isoformat()
    end = today.isoformat()
    report = service.get_past_occupancy(start, end)

    assert repository.count_rooms() == sum(settings.synthetic_rooms_per_type)
    assert len(report.rows) == 15
    for row in report.rows:
        for rate in (row.standard_rate, row.deluxe_rate, row.suite_rate, row.average_rate):
            assert 0.0 <= rate <= 100.0


def test_snapshot_release_failure_is_a_store_error(tmp_path):
    repository = _build_repository(tmp_path, "release.db")

    with pytest.raises(StoreError):
        with repository.snapshot() as view:
            assert len(view.find_all_rooms()) == 3
            # Ending the transaction early makes the closing rollback fail.
            view._connection.execute("ROLLBACK;")

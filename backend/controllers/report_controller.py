"""HTTP controller layer for occupancy and sales reports."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_report_service, get_repository
from backend.domain.models import OccupancyReport
from backend.repository.data_repository import DataRepository, StoreError
from backend.services.report_service import ReportService, ReportValidationError
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["reports"])


class SalesRowResponse(BaseModel):
    date: date
    total_sales: int = Field(ge=0)
    top_menu: str = Field(min_length=1)


class SalesSummaryResponse(BaseModel):
    average_sales: float = Field(ge=0.0)
    rows: list[SalesRowResponse]


class OccupancyRowResponse(BaseModel):
    date: date
    standard_rate: float = Field(ge=0.0, le=100.0)
    deluxe_rate: float = Field(ge=0.0, le=100.0)
    suite_rate: float = Field(ge=0.0, le=100.0)
    average_rate: float = Field(ge=0.0, le=100.0)


class OccupancyReportResponse(BaseModel):
    average_rate: float = Field(ge=0.0, le=100.0)
    rows: list[OccupancyRowResponse]


class RoomOccupancyResponse(BaseModel):
    room_number: str
    total_days: int = Field(ge=0)
    reserved_days: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=100.0)


class CurrentOccupancyResponse(BaseModel):
    room_number: str
    reservation_id: str
    check_in: date
    check_out: date
    guest_num: int = Field(ge=0)


class RoomPredictionResponse(BaseModel):
    room_number: str
    predicted_rate: float = Field(ge=0.0, le=100.0)


class HealthResponse(BaseModel):
    status: str
    rooms: int = Field(ge=0)


@contextmanager
def _report_errors(failure_detail: str) -> Iterator[None]:
    try:
        yield
    except ReportValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except HTTPException:
        raise
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected report failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_detail,
        ) from exc


def _to_occupancy_response(report: OccupancyReport) -> OccupancyReportResponse:
    return OccupancyReportResponse(
        average_rate=report.average_rate,
        rows=[
            OccupancyRowResponse(
                date=row.date,
                standard_rate=row.standard_rate,
                deluxe_rate=row.deluxe_rate,
                suite_rate=row.suite_rate,
                average_rate=row.average_rate,
            )
            for row in report.rows
        ],
    )


@router.get("/health", response_model=HealthResponse)
def health(repository: DataRepository = Depends(get_repository)) -> HealthResponse:
    with _report_errors("Health check failed"):
        return HealthResponse(status="ok", rooms=repository.count_rooms())


@router.get("/sales", response_model=SalesSummaryResponse)
def menu_sales(
    start: str = Query(..., description="YYYY-MM-DD, inclusive"),
    end: str = Query(..., description="YYYY-MM-DD, inclusive"),
    service: ReportService = Depends(get_report_service),
) -> SalesSummaryResponse:
    """Average daily revenue and one row per date with its best seller."""
    with _report_errors("Failed to build sales report"):
        summary = service.get_menu_sales_by_date_range(start, end)
        return SalesSummaryResponse(
            average_sales=summary.average_sales,
            rows=[
                SalesRowResponse(
                    date=row.date,
                    total_sales=row.total_sales,
                    top_menu=row.top_menu,
                )
                for row in summary.rows
            ],
        )


@router.get("/occupancy/past", response_model=OccupancyReportResponse)
def past_occupancy(
    start: str,
    end: str,
    service: ReportService = Depends(get_report_service),
) -> OccupancyReportResponse:
    with _report_errors("Failed to compute past occupancy"):
        return _to_occupancy_response(service.get_past_occupancy(start, end))


@router.get("/occupancy/past/rooms", response_model=list[RoomOccupancyResponse])
def past_room_occupancy(
    start: str,
    end: str,
    service: ReportService = Depends(get_report_service),
) -> list[RoomOccupancyResponse]:
    with _report_errors("Failed to compute room occupancy"):
        return [
            RoomOccupancyResponse(
                room_number=row.room_number,
                total_days=row.total_days,
                reserved_days=row.reserved_days,
                occupancy_rate=row.occupancy_rate,
            )
            for row in service.get_past_occupancy_report(start, end)
        ]


@router.get("/occupancy/current", response_model=list[CurrentOccupancyResponse])
def current_occupancy(
    service: ReportService = Depends(get_report_service),
) -> list[CurrentOccupancyResponse]:
    with _report_errors("Failed to list current occupancy"):
        return [
            CurrentOccupancyResponse(
                room_number=row.room_number,
                reservation_id=row.reservation_id,
                check_in=row.check_in,
                check_out=row.check_out,
                guest_num=row.guest_num,
            )
            for row in service.get_current_occupancy_report()
        ]


@router.get("/occupancy/future", response_model=OccupancyReportResponse)
def future_occupancy(
    start: str,
    end: str,
    service: ReportService = Depends(get_report_service),
) -> OccupancyReportResponse:
    """Booked dates use actual counts; unbooked dates get seasonal placeholder rates."""
    with _report_errors("Failed to forecast occupancy"):
        return _to_occupancy_response(service.get_future_occupancy(start, end))


@router.get("/occupancy/prediction", response_model=list[RoomPredictionResponse])
def weekday_prediction(
    target_date: str,
    service: ReportService = Depends(get_report_service),
) -> list[RoomPredictionResponse]:
    with _report_errors("Failed to predict occupancy"):
        return [
            RoomPredictionResponse(
                room_number=row.room_number,
                predicted_rate=row.predicted_rate,
            )
            for row in service.get_future_occupancy_prediction(target_date)
        ]


@router.get("/wire/past_occupancy", response_class=PlainTextResponse)
def past_occupancy_wire(
    start: str,
    end: str,
    service: ReportService = Depends(get_report_service),
) -> PlainTextResponse:
    with _report_errors("Failed to compute past occupancy"):
        return PlainTextResponse(service.handle_past_occupancy_request(start, end))


@router.get("/wire/current_occupancy", response_class=PlainTextResponse)
def current_occupancy_wire(service: ReportService = Depends(get_report_service)) -> PlainTextResponse:
    with _report_errors("Failed to list current occupancy"):
        return PlainTextResponse(service.handle_current_occupancy_request())


@router.get("/wire/future_occupancy", response_class=PlainTextResponse)
def future_occupancy_wire(
    start: str,
    end: str,
    service: ReportService = Depends(get_report_service),
) -> PlainTextResponse:
    with _report_errors("Failed to forecast occupancy"):
        return PlainTextResponse(service.handle_future_occupancy_request(start, end))

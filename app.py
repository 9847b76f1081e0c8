"""
app.py — FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and report service, registers routers, and runs
startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.report_controller import router as report_router
from backend.repository.data_repository import DataRepository
from backend.services.report_service import ReportService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, *, seed_demo_data: bool = True) -> FastAPI:
    """
    Build and wire the FastAPI application.

    One ReportService instance is shared by every request worker, so its lock
    serializes all statistics queries process-wide.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services (business logic, no direct DB access) ---
    report_service = ReportService(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, seed_demo_data=seed_demo_data)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(report_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.report_service = report_service

    return app


def _startup(app: FastAPI, *, seed_demo_data: bool) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The schema must exist before seeding; seeding is skipped when rooms exist.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if seed_demo_data:
        logger.info("Startup: seeding demo rooms, reservations and menu orders")
        repository.seed_synthetic_data()

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()

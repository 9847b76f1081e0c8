"""
main.py — Server launcher and entry point.

Run this file to start the hotel analytics API:

    python main.py

Each client connection is served on its own worker thread; all of them share
the single ReportService built in app.py.

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.

Direct uvicorn usage:
    uvicorn app:app --reload
"""

from __future__ import annotations

import uvicorn

from backend.utils.config import get_settings


def main() -> None:
    """Start the hotel analytics server."""
    settings = get_settings()
    print("=" * 60)
    print(f"  {settings.app_name} {settings.app_version}")
    print("=" * 60)
    print(f"  Server   : http://{settings.api_host}:{settings.api_port}")
    print(f"  API docs : http://{settings.api_host}:{settings.api_port}/docs")
    print("  Dashboard: streamlit run dashboard/app.py")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    # Start uvicorn — this blocks until CTRL+C
    uvicorn.run(
        "app:app",       # points to app.py → app object
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

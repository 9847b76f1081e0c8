"""Process-wide logging for the API, the report service and the store."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from backend.utils.config import get_settings


# Report queries run on the server threadpool; the thread name ties a
# query's log line to the request that issued it.
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"

_LOGGER_INITIALIZED = False


def resolve_log_level(level: Optional[str] = None) -> int:
    """Map a level name (or the configured ``LOG_LEVEL``) to its numeric value."""
    name = (level or get_settings().log_level).strip().upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return resolved


def configure_logging(level: Optional[str] = None) -> None:
    global _LOGGER_INITIALIZED
    resolved_level = resolve_log_level(level)
    if _LOGGER_INITIALIZED:
        if level is not None:
            logging.getLogger().setLevel(resolved_level)
        return

    logging.basicConfig(level=resolved_level, format=LOG_FORMAT, stream=sys.stdout)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)

"""
Logging utilities for the report job and its scripts.

Provides a consistent logging format and an optional per-day log file.
"""

import logging
import sys
from datetime import date
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(
    level: str = "INFO",
    *,
    log_dir: str | None = None,
    business_day: date | None = None,
) -> Path | None:
    """Configure root logging and return the day log file path, if any.

    When ``log_dir`` and ``business_day`` are supplied, records are also
    appended to ``<log_dir>/<YYYY-MM-DD>.log`` so each business day has its own
    file regardless of how many invocations wrote to it.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file: Path | None = None
    if log_dir and business_day is not None:
        log_file = Path(log_dir) / f"{business_day.isoformat()}.log"
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    return log_file


__all__ = ["LOG_FORMAT", "configure_logging"]

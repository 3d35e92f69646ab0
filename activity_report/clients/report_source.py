"""Shared contract and file selection for daily report sources."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence

from activity_report.schemas import ReportFile

logger = logging.getLogger(__name__)

REPORT_SUFFIXES = (".csv", ".xlsx")


class ReportSourceError(Exception):
    """Raised when the source cannot be listed or a file cannot be fetched."""


class ReportSource(Protocol):
    async def fetch_today_file(self, business_day: date) -> Optional[ReportFile]:
        """Stage today's report locally, or return ``None`` when there is none."""


@dataclass(frozen=True)
class ReportCandidate:
    """A report visible at the source, before it is downloaded."""

    name: str
    modified: float
    ref: str


def pick_report(
    candidates: Iterable[ReportCandidate],
    *,
    today_pattern: str,
) -> Optional[ReportCandidate]:
    """Newest report named for today, else the newest report available."""
    reports: Sequence[ReportCandidate] = sorted(
        (c for c in candidates if c.name.lower().endswith(REPORT_SUFFIXES)),
        key=lambda c: c.modified,
        reverse=True,
    )
    if not reports:
        return None

    logger.info("Latest reports at source: %s", [c.name for c in reports[:5]])
    for candidate in reports:
        if today_pattern in candidate.name:
            return candidate

    logger.warning("No report named for %s yet; using latest available", today_pattern)
    return reports[0]


def day_download_dir(download_root: str | Path, business_day: date) -> Path:
    return Path(download_root) / business_day.isoformat()


def purge_stale_downloads(download_root: str | Path, business_day: date) -> list[Path]:
    """Remove dated download folders from days before ``business_day``."""
    root = Path(download_root)
    if not root.is_dir():
        return []

    removed: list[Path] = []
    for entry in root.iterdir():
        if not entry.is_dir():
            continue
        try:
            folder_day = date.fromisoformat(entry.name)
        except ValueError:
            continue
        if folder_day < business_day:
            try:
                shutil.rmtree(entry)
            except OSError as exc:
                logger.error("Download folder cleanup failed for %s: %s", entry, exc)
                continue
            removed.append(entry)
            logger.info("Deleted stale download folder %s", entry)
    return removed


__all__ = [
    "REPORT_SUFFIXES",
    "ReportCandidate",
    "ReportSource",
    "ReportSourceError",
    "day_download_dir",
    "pick_report",
    "purge_stale_downloads",
]

"""Report source reading from a local drop directory."""

from __future__ import annotations

import asyncio
import shutil
from datetime import date
from pathlib import Path
from typing import Optional

from activity_report.clients.report_source import (
    ReportCandidate,
    ReportSourceError,
    day_download_dir,
    pick_report,
)
from activity_report.schemas import ReportFile


class LocalDirectorySource:
    """Stage the day's report from a directory an exporter writes into."""

    def __init__(
        self,
        inbox_dir: str,
        download_dir: str,
        name_date_format: str = "%Y_%m-%d",
    ) -> None:
        self._inbox = Path(inbox_dir)
        self._download_dir = download_dir
        self._name_date_format = name_date_format

    async def fetch_today_file(self, business_day: date) -> Optional[ReportFile]:
        return await asyncio.to_thread(self._fetch, business_day)

    def _fetch(self, business_day: date) -> Optional[ReportFile]:
        if not self._inbox.is_dir():
            raise ReportSourceError(f"Inbox directory {self._inbox} does not exist")

        try:
            candidates = [
                ReportCandidate(
                    name=entry.name,
                    modified=entry.stat().st_mtime,
                    ref=str(entry),
                )
                for entry in self._inbox.iterdir()
                if entry.is_file()
            ]
        except OSError as exc:
            raise ReportSourceError(f"Cannot list {self._inbox}: {exc}") from exc

        selected = pick_report(
            candidates, today_pattern=business_day.strftime(self._name_date_format)
        )
        if selected is None:
            return None

        target_dir = day_download_dir(self._download_dir, business_day)
        target = target_dir / f"local_{selected.name}"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(selected.ref, target)
        except OSError as exc:
            raise ReportSourceError(f"Cannot stage {selected.name}: {exc}") from exc

        return ReportFile(
            name=selected.name,
            path=target,
            identity=f"local:{selected.name}:{int(selected.modified)}",
        )


__all__ = ["LocalDirectorySource"]

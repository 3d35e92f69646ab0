"""Google Drive report source."""

from __future__ import annotations

import asyncio
import io
import logging
import time
from datetime import date, datetime
from typing import Any, Callable, List, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload
from httplib2 import HttpLib2Error

from activity_report.clients.report_source import (
    ReportCandidate,
    ReportSourceError,
    day_download_dir,
    pick_report,
)
from activity_report.schemas import ReportFile

logger = logging.getLogger(__name__)

DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"


def _service_account_factory(key_file: str) -> Callable[[], Any]:
    def _build_service() -> Any:
        credentials = service_account.Credentials.from_service_account_file(
            key_file, scopes=[DRIVE_READONLY_SCOPE]
        )
        return build("drive", "v3", credentials=credentials, cache_discovery=False)

    return _build_service


def _modified_timestamp(raw: str | None) -> float:
    if not raw:
        return 0.0
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


class GoogleDriveSource:
    """Download the day's report from a Drive folder the exporter writes into."""

    def __init__(
        self,
        *,
        folder_id: str,
        download_dir: str,
        name_date_format: str = "%Y_%m-%d",
        service_factory: Callable[[], Any] | None = None,
        service_account_file: str | None = None,
        download_attempts: int = 3,
    ) -> None:
        if service_factory is None:
            if not service_account_file:
                raise ValueError("A service account file is required for Drive access.")
            service_factory = _service_account_factory(service_account_file)
        self._folder_id = folder_id
        self._download_dir = download_dir
        self._name_date_format = name_date_format
        self._service_factory = service_factory
        self._download_attempts = download_attempts

    async def fetch_today_file(self, business_day: date) -> Optional[ReportFile]:
        return await asyncio.to_thread(self._fetch, business_day)

    def _fetch(self, business_day: date) -> Optional[ReportFile]:
        try:
            service = self._service_factory()
            candidates = self._list_candidates(service)
        except (HttpError, GoogleAuthError, HttpLib2Error, OSError) as exc:
            raise ReportSourceError(f"Cannot list Drive folder {self._folder_id}: {exc}") from exc

        selected = pick_report(
            candidates, today_pattern=business_day.strftime(self._name_date_format)
        )
        if selected is None:
            return None

        target_dir = day_download_dir(self._download_dir, business_day)
        target = target_dir / f"drive_{selected.name}"
        try:
            payload = self._download(service, selected.ref)
            target_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
        except OSError as exc:
            raise ReportSourceError(f"Cannot stage {selected.name}: {exc}") from exc

        logger.info("Downloaded %s to %s", selected.name, target)
        return ReportFile(
            name=selected.name,
            path=target,
            identity=f"drive:{selected.ref}:{int(selected.modified)}",
        )

    def _list_candidates(self, service: Any) -> List[ReportCandidate]:
        candidates: List[ReportCandidate] = []
        page_token: str | None = None
        while True:
            response = (
                service.files()
                .list(
                    q=f"'{self._folder_id}' in parents and trashed = false",
                    fields="nextPageToken, files(id, name, modifiedTime)",
                    orderBy="modifiedTime desc",
                    pageSize=100,
                    pageToken=page_token,
                )
                .execute()
            )
            for item in response.get("files", []):
                candidates.append(
                    ReportCandidate(
                        name=item.get("name", ""),
                        modified=_modified_timestamp(item.get("modifiedTime")),
                        ref=item["id"],
                    )
                )
            page_token = response.get("nextPageToken")
            if not page_token:
                return candidates

    def _download(self, service: Any, file_id: str) -> bytes:
        attempt = 0
        while True:
            try:
                request = service.files().get_media(fileId=file_id)
                fh = io.BytesIO()
                downloader = MediaIoBaseDownload(fh, request)
                done = False
                while not done:
                    _, done = downloader.next_chunk()
                return fh.getvalue()
            except (HttpError, GoogleAuthError, HttpLib2Error, OSError) as exc:
                attempt += 1
                logger.warning(
                    "Drive download attempt %s/%s for %s failed: %s",
                    attempt,
                    self._download_attempts,
                    file_id,
                    exc,
                )
                if attempt >= self._download_attempts:
                    raise ReportSourceError(
                        f"Failed to download Drive file {file_id}: {exc}"
                    ) from exc
                time.sleep(0.5 * attempt)


__all__ = ["DRIVE_READONLY_SCOPE", "GoogleDriveSource"]

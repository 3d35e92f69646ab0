"""
Process entrypoint for the scheduled merge-and-mail job.

Meant to be started every few minutes by a scheduler or process manager::

    python -m jobs.merge_and_mail.handler
    python -m jobs.merge_and_mail.handler --every 300
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, Optional

from activity_report.clients import (
    FileRunLock,
    GoogleDriveSource,
    LocalDirectorySource,
    ReportSource,
    ResendNotifier,
    SQLiteStore,
)
from activity_report.core.config import AppSettings, get_settings
from activity_report.core.logging import configure_logging
from activity_report.services import ReportJob, RunGatekeeper, RunStateRepository, RunStatus
from activity_report.utils.clock import Clock, SystemClock, current_business_day

logger = logging.getLogger(__name__)


def _build_source(settings: AppSettings) -> ReportSource:
    source = settings.source
    download_dir = settings.storage.download_dir
    if source.kind == "drive":
        if not source.drive_folder_id:
            raise ValueError("GOOGLE_DRIVE_FOLDER_ID is required when REPORT_SOURCE=drive")
        return GoogleDriveSource(
            folder_id=source.drive_folder_id,
            download_dir=download_dir,
            name_date_format=source.name_date_format,
            service_account_file=source.service_account_file,
        )
    return LocalDirectorySource(
        inbox_dir=source.inbox_dir,
        download_dir=download_dir,
        name_date_format=source.name_date_format,
    )


def _bootstrap(settings: AppSettings, clock: Optional[Clock] = None) -> Dict[str, Any]:
    """Wire the job's collaborators from settings."""
    clock = clock or SystemClock()
    store = SQLiteStore(settings.storage.state_db_path)
    notifier = ResendNotifier(settings.notifier)
    gatekeeper = RunGatekeeper(
        repository=RunStateRepository(store),
        notifier=notifier,
        schedule=settings.schedule,
        operator_recipients=settings.notifier.operator_recipients,
        clock=clock,
    )
    job = ReportJob(
        gatekeeper=gatekeeper,
        source=_build_source(settings),
        notifier=notifier,
        download_dir=settings.storage.download_dir,
        signature=settings.notifier.signature,
    )
    return {"job": job, "lock": FileRunLock(settings.storage.lock_path)}


async def run_job(job: ReportJob, lock: FileRunLock) -> RunStatus:
    """Run one invocation under the lock; never raises."""
    try:
        with lock.hold() as granted:
            if not granted:
                logger.info("Another run holds %s. Exiting.", lock.path)
                return RunStatus.LOCKED
            status = await job.run_once()
    except Exception:  # last barrier; hold() has already released the lock
        logger.exception("merge-and-mail run failed")
        return RunStatus.FAILED
    logger.info("merge-and-mail run finished: %s", status.value)
    return status


async def run_forever(job: ReportJob, lock: FileRunLock, interval_seconds: float) -> None:
    while True:
        await run_job(job, lock)
        await asyncio.sleep(interval_seconds)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch today's agent report, aggregate it and email every agent."
    )
    parser.add_argument(
        "--every",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Keep running, invoking the job every SECONDS (default: run once).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        settings.log_level,
        log_dir=settings.log_dir,
        business_day=current_business_day(SystemClock().now(), settings.schedule.tz),
    )

    try:
        components = _bootstrap(settings)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    job: ReportJob = components["job"]
    lock: FileRunLock = components["lock"]
    if args.every:
        try:
            asyncio.run(run_forever(job, lock, args.every))
        except KeyboardInterrupt:
            logger.info("merge-and-mail loop stopped")
        return 0

    status = asyncio.run(run_job(job, lock))
    return 1 if status is RunStatus.FAILED else 0


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())

"""
Decide whether an invocation may ingest, and run the daily start/end notices.

Per business day the job moves ``NOT_STARTED -> STARTED -> ENDED``. Nothing
resets the machine at midnight: once the business day in the reference zone
changes, the stored day flags simply stop matching today.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Sequence

from activity_report.clients.resend_mailer import Notifier
from activity_report.core.config import ScheduleSettings
from activity_report.schemas import DeliverySummary, ReportFile
from activity_report.services.email_templates import job_ended_email, job_started_email
from activity_report.services.run_state import RunStateRepository
from activity_report.utils.clock import Clock, current_business_day, local_time

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Outcome of one invocation."""

    ADMITTED = "admitted"
    LOCKED = "locked"
    DAY_ENDED = "day_ended"
    OUTSIDE_WINDOW = "outside_window"
    GAP_NOT_ELAPSED = "gap_not_elapsed"
    NO_FILE = "no_file"
    SOURCE_FAILED = "source_failed"
    DUPLICATE_FILE = "duplicate_file"
    PARSE_FAILED = "parse_failed"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass(frozen=True)
class GateDecision:
    status: RunStatus
    business_day: date
    now: datetime

    @property
    def admitted(self) -> bool:
        return self.status is RunStatus.ADMITTED


class RunGatekeeper:
    """Owns every mutation of ``RunState``."""

    def __init__(
        self,
        *,
        repository: RunStateRepository,
        notifier: Notifier,
        schedule: ScheduleSettings,
        operator_recipients: Sequence[str],
        clock: Clock,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._schedule = schedule
        self._operators = tuple(operator_recipients)
        self._clock = clock
        self._min_gap = timedelta(minutes=schedule.min_gap_minutes)

    def business_day(self) -> date:
        return current_business_day(self._clock.now(), self._schedule.tz)

    async def admit(self) -> GateDecision:
        """Evaluate end-of-day, window, gap and start-of-day, in that order."""
        now = self._clock.now()
        local_now = local_time(now, self._schedule.tz)
        today = local_now.date()
        state = self._repository.load()

        if local_now.hour >= self._schedule.window_end_hour:
            if state.day_started == today and state.day_ended != today:
                await self._announce_end(today, local_now, state.sheets_processed_today)
                return GateDecision(RunStatus.DAY_ENDED, today, now)
            logger.info("Outside business hours (%02d:00). Skipping run.", local_now.hour)
            return GateDecision(RunStatus.OUTSIDE_WINDOW, today, now)

        if local_now.hour < self._schedule.window_start_hour:
            logger.info("Outside business hours (%02d:00). Skipping run.", local_now.hour)
            return GateDecision(RunStatus.OUTSIDE_WINDOW, today, now)

        if state.last_run_at is not None:
            elapsed = now - state.last_run_at
            if elapsed < timedelta(0):
                logger.warning(
                    "Last run %s is in the future; ignoring it", state.last_run_at.isoformat()
                )
            elif elapsed < self._min_gap:
                logger.info(
                    "Skipping run (only %.1f min passed). Waiting for %.0f min gap.",
                    elapsed.total_seconds() / 60,
                    self._min_gap.total_seconds() / 60,
                )
                return GateDecision(RunStatus.GAP_NOT_ELAPSED, today, now)

        if state.day_started != today:
            await self._announce_start(today, local_now)

        # Recorded before the slow fetch so an overlapping invocation sees the gap.
        self._repository.record_run(now)
        return GateDecision(RunStatus.ADMITTED, today, now)

    def is_duplicate(self, report: ReportFile) -> bool:
        last = self._repository.state.last_processed_file_id
        return last is not None and last == report.identity

    def record_ingest(self, report: ReportFile, delivery: DeliverySummary) -> None:
        self._repository.mark_processed(report.identity)
        if delivery.any_delivered:
            count = self._repository.increment_sheets()
            logger.info("Sheets processed today: %s", count)

    async def _announce_start(self, today: date, local_now: datetime) -> None:
        subject, html = job_started_email(today, local_now)
        delivered = await self._notifier.notify(self._operators, subject, html)
        if not delivered:
            logger.error("Start notification for %s was not delivered", today)
        self._repository.mark_started(today)
        logger.info("Job started for %s", today)

    async def _announce_end(self, today: date, local_now: datetime, sheets: int) -> None:
        subject, html = job_ended_email(today, local_now, sheets)
        delivered = await self._notifier.notify(self._operators, subject, html)
        if not delivered:
            logger.error("End notification for %s was not delivered", today)
        self._repository.mark_ended(today)
        logger.info("Job ended for %s after %s sheets", today, sheets)


__all__ = ["GateDecision", "RunGatekeeper", "RunStatus"]

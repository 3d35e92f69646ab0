"""
One invocation of the report job: admit, fetch, parse, aggregate, deliver.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Callable, List

from activity_report.clients.report_source import (
    ReportSource,
    ReportSourceError,
    purge_stale_downloads,
)
from activity_report.clients.resend_mailer import Notifier
from activity_report.schemas import AggregatedAgent, DeliverySummary, RawRecord, ReportFile
from activity_report.services.aggregation import EmptyReportError, aggregate
from activity_report.services.email_templates import agent_report_email
from activity_report.services.gatekeeper import RunGatekeeper, RunStatus
from activity_report.services.report_parser import ReportParseError, parse_rows

logger = logging.getLogger(__name__)


class ReportJob:
    """Coordinate the gatekeeper, report source, parser and notifier."""

    def __init__(
        self,
        *,
        gatekeeper: RunGatekeeper,
        source: ReportSource,
        notifier: Notifier,
        download_dir: str,
        signature: str,
        parser: Callable[[Path], List[RawRecord]] = parse_rows,
    ) -> None:
        self._gatekeeper = gatekeeper
        self._source = source
        self._notifier = notifier
        self._download_dir = download_dir
        self._signature = signature
        self._parser = parser

    async def run_once(self) -> RunStatus:
        purge_stale_downloads(self._download_dir, self._gatekeeper.business_day())

        decision = await self._gatekeeper.admit()
        if not decision.admitted:
            return decision.status
        today = decision.business_day

        try:
            report = await self._source.fetch_today_file(today)
        except ReportSourceError as exc:
            logger.error("Report download failed: %s", exc)
            return RunStatus.SOURCE_FAILED
        if report is None:
            logger.info("No report available yet. Skipping run.")
            return RunStatus.NO_FILE
        logger.info("Downloaded report %s", report.name)

        if self._gatekeeper.is_duplicate(report):
            logger.info("No new report (same as last processed). Skipping emails.")
            self._discard(report)
            return RunStatus.DUPLICATE_FILE

        agents = await self._load_agents(report)
        if not agents:
            return RunStatus.PARSE_FAILED
        logger.info("Total unique agents: %s", len(agents))

        delivery = await self._deliver(agents, today)
        logger.info(
            "Email summary: success=%s failed=%s", delivery.sent, delivery.failed
        )

        self._gatekeeper.record_ingest(report, delivery)
        if delivery.any_delivered:
            self._discard(report)
        return RunStatus.PROCESSED

    async def _load_agents(self, report: ReportFile) -> List[AggregatedAgent]:
        try:
            rows = await asyncio.to_thread(self._parser, report.path)
        except ReportParseError as exc:
            logger.error("Could not parse %s: %s", report.name, exc)
            return []
        try:
            agents = aggregate(rows)
        except EmptyReportError:
            logger.error("No data rows found in %s", report.name)
            return []
        if not agents:
            logger.error("No agents to email in %s", report.name)
        return agents

    async def _deliver(
        self, agents: List[AggregatedAgent], business_day: date
    ) -> DeliverySummary:
        summary = DeliverySummary()
        for agent in agents:
            subject, html = agent_report_email(agent, business_day, signature=self._signature)
            try:
                delivered = await self._notifier.notify([agent.agent_key], subject, html)
            except Exception:  # one agent must not block the rest
                logger.exception("Email to %s raised", agent.agent_key)
                delivered = False
            if delivered:
                summary.sent += 1
            else:
                summary.failed += 1
                summary.failed_recipients.append(agent.agent_key)
        return summary

    @staticmethod
    def _discard(report: ReportFile) -> None:
        try:
            report.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Could not delete %s: %s", report.path, exc)
        else:
            logger.info("Deleted processed file %s", report.path)


__all__ = ["ReportJob"]

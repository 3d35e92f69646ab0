"""
Fold raw report rows into one entry per agent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from activity_report.schemas import AggregatedAgent, RawRecord
from activity_report.services.durations import (
    average_duration,
    format_duration,
    parse_duration,
)

logger = logging.getLogger(__name__)

_DESCRIPTIVE_FIELDS = ("first_name", "last_name", "group_label")


class EmptyReportError(ValueError):
    """Raised when there are no rows to aggregate."""


@dataclass
class _Accumulator:
    agent_key: str
    first_name: str = ""
    last_name: str = ""
    group_label: str = ""
    calls: int = 0
    handle_seconds: int = 0
    talk_seconds: int = 0
    acw_seconds: int = 0

    def absorb(self, row: RawRecord) -> None:
        # Descriptive fields are back-filled but never overwritten once set.
        for field_name in _DESCRIPTIVE_FIELDS:
            if not getattr(self, field_name) and getattr(row, field_name):
                setattr(self, field_name, getattr(row, field_name))

        self.calls += row.call_count
        self.handle_seconds += parse_duration(row.handle_time)
        self.talk_seconds += parse_duration(row.talk_time)
        self.acw_seconds += parse_duration(row.after_call_work_time)

    def build(self) -> AggregatedAgent:
        return AggregatedAgent(
            agent_key=self.agent_key,
            first_name=self.first_name,
            last_name=self.last_name,
            group_label=self.group_label,
            total_calls=self.calls,
            total_handle_seconds=self.handle_seconds,
            total_talk_seconds=self.talk_seconds,
            total_acw_seconds=self.acw_seconds,
            handle_time=format_duration(self.handle_seconds),
            talk_time=format_duration(self.talk_seconds),
            after_call_work_time=format_duration(self.acw_seconds),
            avg_handle=average_duration(self.handle_seconds, self.calls),
            avg_talk=average_duration(self.talk_seconds, self.calls),
            avg_acw=average_duration(self.acw_seconds, self.calls),
        )


def aggregate(rows: Sequence[RawRecord] | Iterable[RawRecord]) -> List[AggregatedAgent]:
    """Merge rows sharing an agent key into totals and per-call averages.

    Output keeps the order in which each agent key first appeared. Rows with
    an empty key are dropped.
    """
    rows = list(rows)
    if not rows:
        raise EmptyReportError("No rows to aggregate")

    accumulators: Dict[str, _Accumulator] = {}
    skipped = 0
    for row in rows:
        key = row.agent_key.strip()
        if not key:
            skipped += 1
            continue
        accumulator = accumulators.get(key)
        if accumulator is None:
            accumulator = accumulators[key] = _Accumulator(agent_key=key)
        accumulator.absorb(row)

    if skipped:
        logger.info("Dropped %s rows without an agent key", skipped)
    return [accumulator.build() for accumulator in accumulators.values()]


__all__ = ["EmptyReportError", "aggregate"]

"""Public schema exports."""

from .report import AggregatedAgent, DeliverySummary, RawRecord, ReportFile

__all__ = [
    "AggregatedAgent",
    "DeliverySummary",
    "RawRecord",
    "ReportFile",
]

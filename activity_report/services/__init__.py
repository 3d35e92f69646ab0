"""Service layer exports."""

from .aggregation import EmptyReportError, aggregate
from .durations import average_duration, format_duration, parse_duration
from .gatekeeper import GateDecision, RunGatekeeper, RunStatus
from .report_job import ReportJob
from .report_parser import ReportParseError, parse_rows
from .run_state import RunState, RunStateRepository

__all__ = [
    "EmptyReportError",
    "GateDecision",
    "ReportJob",
    "ReportParseError",
    "RunGatekeeper",
    "RunState",
    "RunStateRepository",
    "RunStatus",
    "aggregate",
    "average_duration",
    "format_duration",
    "parse_duration",
    "parse_rows",
]

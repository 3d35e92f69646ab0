"""
Pydantic models for report rows, aggregated agents and delivery results.
"""

from pathlib import Path
from typing import Any, List

from pydantic import BaseModel, Field, field_validator


class RawRecord(BaseModel):
    """One row of the vendor's agent activity export."""

    agent_key: str = Field("", description="Natural identifier, usually the agent email.")
    call_count: int = Field(0, ge=0)
    handle_time: Any = Field("", description="Duration text or numeric seconds.")
    talk_time: Any = Field("")
    after_call_work_time: Any = Field("")
    group_label: str = Field("")
    first_name: str = Field("")
    last_name: str = Field("")

    @field_validator("agent_key", "group_label", "first_name", "last_name", mode="before")
    def _as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("call_count", mode="before")
    def _as_count(cls, value: Any) -> int:
        """Spreadsheet cells arrive as text, floats or blanks."""
        if value is None:
            return 0
        text = str(value).strip()
        if not text:
            return 0
        try:
            return max(0, int(float(text)))
        except (ValueError, OverflowError):
            return 0


class AggregatedAgent(BaseModel):
    """Per-agent totals and averages for a single report file."""

    agent_key: str
    first_name: str = ""
    last_name: str = ""
    group_label: str = ""
    total_calls: int = 0
    total_handle_seconds: int = 0
    total_talk_seconds: int = 0
    total_acw_seconds: int = 0
    handle_time: str = "00:00:00"
    talk_time: str = "00:00:00"
    after_call_work_time: str = "00:00:00"
    avg_handle: str = "00:00:00"
    avg_talk: str = "00:00:00"
    avg_acw: str = "00:00:00"

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.agent_key or "Agent"


class ReportFile(BaseModel):
    """A report fetched from the source and staged on local disk."""

    name: str
    path: Path
    identity: str = Field(
        ...,
        description="Stable identifier of the remote object, used to skip re-processing.",
    )


class DeliverySummary(BaseModel):
    """Outcome of emailing every aggregated agent."""

    sent: int = 0
    failed: int = 0
    failed_recipients: List[str] = Field(default_factory=list)

    @property
    def any_delivered(self) -> bool:
        return self.sent > 0


__all__ = ["AggregatedAgent", "DeliverySummary", "RawRecord", "ReportFile"]

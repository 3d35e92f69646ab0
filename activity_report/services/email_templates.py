"""HTML bodies for agent reports and operator notices."""

from __future__ import annotations

from datetime import date, datetime
from html import escape
from typing import Tuple

from activity_report.schemas import AggregatedAgent

_TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


def agent_report_email(
    agent: AggregatedAgent, business_day: date, *, signature: str
) -> Tuple[str, str]:
    """Return ``(subject, html)`` for one agent's activity report."""
    day = business_day.isoformat()
    subject = f"Hourly Activity Report - {day}"
    html = f"""
    <p style="margin-bottom:12px;">Hello <b>{escape(agent.display_name)}</b>,</p>
    <p style="margin-bottom:12px;">Here is your activity stats for <b>{day}</b>:</p>

    <div style="background:#fdf7f5;border-left:4px solid #6A3826;padding:12px 15px;font-size:15px;margin:18px 0;color:#6A3826;">
      <p><b>Email (AGENT):</b> {escape(agent.agent_key)}</p>
      <p><b>Calls Count:</b> {agent.total_calls}</p>

      <hr style="border:none;border-top:1px solid #ccc;margin:10px 0;">

      <p><b>Handle Time:</b> {agent.handle_time}</p>
      <p><b>Avg Handle Time:</b> {agent.avg_handle}</p>

      <p><b>Talk Time:</b> {agent.talk_time}</p>
      <p><b>Avg Talk Time:</b> {agent.avg_talk}</p>

      <p><b>After Call Work Time:</b> {agent.after_call_work_time}</p>
      <p><b>Avg After Call Work Time:</b> {agent.avg_acw}</p>
    </div>

    <p style="margin-top:25px;font-size:13px;color:#777;">
      Thank you,<br>{escape(signature)}
    </p>
    """
    return subject, html


def job_started_email(business_day: date, started_at: datetime) -> Tuple[str, str]:
    day = business_day.isoformat()
    subject = f"Daily Agent Script Started - {day}"
    html = f"""
    <p>Hello Team,</p>
    <p>The daily agent report script has <b>STARTED</b>.</p>
    <p><b>Start Time:</b> {started_at.strftime(_TIMESTAMP_FORMAT)}</p>
    <br>
    <p>&mdash; System</p>
    """
    return subject, html


def job_ended_email(
    business_day: date, ended_at: datetime, sheets_processed: int
) -> Tuple[str, str]:
    day = business_day.isoformat()
    subject = f"Daily Agent Script Ended - {day}"
    html = f"""
    <p>Hello Team,</p>
    <p>The daily agent report script has <b>ENDED</b>.</p>
    <p><b>Date:</b> {day}</p>
    <p><b>Total Sheets Processed Today:</b> {sheets_processed}</p>
    <p><b>End Time:</b> {ended_at.strftime(_TIMESTAMP_FORMAT)}</p>
    <br>
    <p>&mdash; System</p>
    """
    return subject, html


__all__ = ["agent_report_email", "job_ended_email", "job_started_email"]

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import time, timedelta

import pytest

from activity_report.services.durations import (
    average_duration,
    format_duration,
    parse_duration,
)


@pytest.mark.parametrize(
    ("text", "seconds"),
    [
        ("90", 90),
        ("00:10:00", 600),
        ("1:02:03", 3723),
        ("1:30", 90),
        ("7", 7),
        (" 00:05:00 ", 300),
        ("120:00:00", 432000),
        ("12.9", 12),
    ],
)
def test_parse_duration_accepts_supported_forms(text: str, seconds: int) -> None:
    assert parse_duration(text) == seconds


@pytest.mark.parametrize("text", ["", "   ", None, "n/a", "1:2:3:4", "-5", "10:aa", ":30"])
def test_parse_duration_falls_back_to_zero(text) -> None:
    assert parse_duration(text) == 0


def test_parse_duration_accepts_spreadsheet_cells() -> None:
    assert parse_duration(45) == 45
    assert parse_duration(45.8) == 45
    assert parse_duration(time(0, 3, 15)) == 195
    assert parse_duration(timedelta(hours=26, seconds=5)) == 93605
    assert parse_duration(float("nan")) == 0
    assert parse_duration(True) == 0


def test_format_duration_pads_and_keeps_long_hours() -> None:
    assert format_duration(0) == "00:00:00"
    assert format_duration(59.99) == "00:00:59"
    assert format_duration(3723) == "01:02:03"
    assert format_duration(100 * 3600 + 61) == "100:01:01"
    assert format_duration(-30) == "00:00:00"


@pytest.mark.parametrize(
    ("text", "normalized"),
    [("0:10:0", "00:10:00"), ("5:7", "00:05:07"), ("3600", "01:00:00"), ("", "00:00:00")],
)
def test_format_of_parse_is_normalized_text(text: str, normalized: str) -> None:
    assert format_duration(parse_duration(text)) == normalized


def test_average_duration_handles_zero_calls() -> None:
    assert average_duration(900, 5) == "00:03:00"
    assert average_duration(900, 0) == "00:00:00"
    assert average_duration(0, 0) == "00:00:00"
    assert average_duration(10, 3) == "00:00:03"

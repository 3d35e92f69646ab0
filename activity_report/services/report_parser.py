"""Read agent activity rows from the vendor's CSV or XLSX export."""

from __future__ import annotations

import csv
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError

from activity_report.schemas import RawRecord

SUPPORTED_SUFFIXES = (".csv", ".xlsx")

# Export header -> RawRecord field.
COLUMN_MAP: Dict[str, str] = {
    "AGENT": "agent_key",
    "CALLS count": "call_count",
    "HANDLE TIME": "handle_time",
    "TALK TIME": "talk_time",
    "AFTER CALL WORK TIME": "after_call_work_time",
    "AGENT GROUP": "group_label",
    "AGENT FIRST NAME": "first_name",
    "AGENT LAST NAME": "last_name",
}


class ReportParseError(Exception):
    """Raised when a report file cannot be read as a table of rows."""


# ElementTree and lxml parse errors both derive from SyntaxError.
_WORKBOOK_ERRORS = (
    InvalidFileException,
    zipfile.BadZipFile,
    SyntaxError,
    OSError,
    KeyError,
    IndexError,
    ValueError,
)


def _normalise_header(value: Any) -> str:
    return " ".join(str(value or "").split())


def _to_record(raw: Dict[str, Any]) -> RawRecord:
    values = {
        field_name: raw.get(header)
        for header, field_name in COLUMN_MAP.items()
        if raw.get(header) is not None
    }
    return RawRecord(**values)


def _rows_from_table(headers: List[str], body: Iterable[Iterable[Any]]) -> Iterator[Dict[str, Any]]:
    for values in body:
        values = list(values)
        if all(value is None or str(value).strip() == "" for value in values):
            continue
        yield {
            header: values[index] if index < len(values) else None
            for index, header in enumerate(headers)
            if header
        }


def _read_xlsx(path: Path) -> List[Dict[str, Any]]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except _WORKBOOK_ERRORS as exc:
        raise ReportParseError(f"Cannot open workbook {path.name}: {exc}") from exc

    # Read-only sheets are parsed lazily, so broken sheet XML surfaces here.
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []
        headers = [_normalise_header(value) for value in header_row]
        return list(_rows_from_table(headers, rows))
    except _WORKBOOK_ERRORS as exc:
        raise ReportParseError(f"Cannot read sheet of {path.name}: {exc}") from exc
    finally:
        workbook.close()


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    try:
        with path.open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle)
            header_row = next(reader, None)
            if header_row is None:
                return []
            headers = [_normalise_header(value) for value in header_row]
            return list(_rows_from_table(headers, reader))
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise ReportParseError(f"Cannot read CSV {path.name}: {exc}") from exc


def parse_rows(path: Path | str) -> List[RawRecord]:
    """Return the report rows of ``path``; an empty list when it has none."""
    path = Path(path)
    if not path.exists():
        raise ReportParseError(f"Report file {path} does not exist")

    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        table = _read_xlsx(path)
    elif suffix == ".csv":
        table = _read_csv(path)
    else:
        raise ReportParseError(f"Unsupported report format {suffix or '(none)'}")

    try:
        return [_to_record(row) for row in table]
    except ValidationError as exc:
        raise ReportParseError(f"Unexpected cell values in {path.name}: {exc}") from exc


__all__ = ["COLUMN_MAP", "ReportParseError", "SUPPORTED_SUFFIXES", "parse_rows"]

"""
app/validators/csv_validator.py

Row-level parsing and validation for call-record CSV ingestion.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Callable
from datetime import date, datetime, time, timezone
from enum import Enum

from app.domain.call_record import CallRecordInput

DATE_FORMAT = "%Y%m%d"
TIME_FORMAT = "%H:%M:%S"

MIN_COLUMNS = 2
# Close-reason codes are stored in a PostgreSQL INTEGER column.
MAX_CLOSE_REASON_CODE = 2_147_483_647

_DATE_SHAPE = re.compile(r"^\d{8}$")
_TIME_SHAPE = re.compile(r"^\d{2}:\d{2}:\d{2}$")
_INTEGER_SHAPE = re.compile(r"^[+-]?\d+$")
_HAS_DIGIT = re.compile(r"\d")
_MAX_RAW_LINE_IN_MESSAGE = 200


class RowParseErrorKind(str, Enum):
    MISSING_COLUMNS = "missing_columns"
    MALFORMED_DATE = "malformed_date"
    MALFORMED_TIME = "malformed_time"
    INVALID_CLOSE_REASON = "invalid_close_reason"


class RowParseError(ValueError):
    """
    Raised when one CSV line cannot be turned into a call record.
    """

    def __init__(
        self,
        *,
        kind: RowParseErrorKind,
        row_number: int,
        raw_line: str,
        message: str,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.row_number = row_number
        self.raw_line = raw_line
        self.message = message

    def describe(self) -> str:
        """
        Human-readable error entry used in upload results.
        """

        raw = self.raw_line
        if len(raw) > _MAX_RAW_LINE_IN_MESSAGE:
            raw = raw[:_MAX_RAW_LINE_IN_MESSAGE] + "..."
        return f"Row {self.row_number}: {self.message} | line: {raw}"


def split_columns(raw_line: str) -> list[str]:
    """
    Split one CSV line into stripped columns. A blank line has no columns.
    """

    if not raw_line.strip():
        return []
    try:
        columns = next(csv.reader([raw_line]))
    except (csv.Error, StopIteration):
        columns = raw_line.split(",")
    return [column.strip() for column in columns]


def looks_like_header(line: str) -> bool:
    """
    Return True when *line* reads as a column-name row.

    A header has at least two columns and neither of the first two holds a
    digit, so a data row with a malformed date (``2024-01-15``) or a
    malformed time is never mistaken for one.
    """

    columns = split_columns(line.rstrip("\r\n").lstrip("\ufeff"))
    if len(columns) < MIN_COLUMNS:
        return False
    return all(column and not _HAS_DIGIT.search(column) for column in columns[:MIN_COLUMNS])


class CallRecordRowParser:
    """
    Parses one comma-separated line into a ``CallRecordInput``.

    Column contract: first column date (YYYYMMDD), second column time
    (HH:mm:ss), close-reason code in the second-to-last column. When that
    column is not an integer, the last column is used instead, so both
    ``20240115,08:30:45,x,x,1`` and exported rows ending in
    ``...,<code>,<hour_group>`` parse. Neither candidate may be the time
    column itself. Any other columns are ignored.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def parse_line(self, line: str, row_number: int) -> CallRecordInput:
        raw_line = line.rstrip("\r\n")
        columns = split_columns(raw_line)

        if len(columns) < MIN_COLUMNS:
            raise RowParseError(
                kind=RowParseErrorKind.MISSING_COLUMNS,
                row_number=row_number,
                raw_line=raw_line,
                message=f"Expected at least {MIN_COLUMNS} columns, found {len(columns)}.",
            )

        call_date = self._parse_date(columns[0], row_number=row_number, raw_line=raw_line)
        call_time = self._parse_time(columns[1], row_number=row_number, raw_line=raw_line)

        if len(columns) <= MIN_COLUMNS:
            raise RowParseError(
                kind=RowParseErrorKind.MISSING_COLUMNS,
                row_number=row_number,
                raw_line=raw_line,
                message="Close reason column is missing.",
            )
        close_reason = self._parse_close_reason(
            columns[MIN_COLUMNS:],
            row_number=row_number,
            raw_line=raw_line,
        )

        return CallRecordInput(
            call_date=call_date,
            call_time=call_time,
            call_close_reason=close_reason,
            hour_group=call_time.hour,
            created_at=self._clock(),
        )

    @staticmethod
    def _parse_date(value: str, *, row_number: int, raw_line: str) -> date:
        if _DATE_SHAPE.match(value):
            try:
                return datetime.strptime(value, DATE_FORMAT).date()
            except ValueError:
                pass
        raise RowParseError(
            kind=RowParseErrorKind.MALFORMED_DATE,
            row_number=row_number,
            raw_line=raw_line,
            message=f"Invalid date {value!r} (expected YYYYMMDD).",
        )

    @staticmethod
    def _parse_time(value: str, *, row_number: int, raw_line: str) -> time:
        if _TIME_SHAPE.match(value):
            try:
                return datetime.strptime(value, TIME_FORMAT).time()
            except ValueError:
                pass
        raise RowParseError(
            kind=RowParseErrorKind.MALFORMED_TIME,
            row_number=row_number,
            raw_line=raw_line,
            message=f"Invalid time {value!r} (expected HH:mm:ss).",
        )

    @staticmethod
    def _parse_close_reason(trailing: list[str], *, row_number: int, raw_line: str) -> int:
        # trailing excludes the date and time columns
        candidates = trailing[-2:]
        value = next(
            (candidate for candidate in candidates if _INTEGER_SHAPE.match(candidate)),
            candidates[0],
        )
        if not _INTEGER_SHAPE.match(value):
            raise RowParseError(
                kind=RowParseErrorKind.INVALID_CLOSE_REASON,
                row_number=row_number,
                raw_line=raw_line,
                message=f"Close reason {value!r} is not an integer.",
            )

        code = int(value)
        if not 1 <= code <= MAX_CLOSE_REASON_CODE:
            raise RowParseError(
                kind=RowParseErrorKind.INVALID_CLOSE_REASON,
                row_number=row_number,
                raw_line=raw_line,
                message=f"Close reason {code} is outside 1..{MAX_CLOSE_REASON_CODE}.",
            )
        return code

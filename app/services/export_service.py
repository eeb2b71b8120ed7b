"""
app/services/export_service.py

CSV export shaping for call records and daily summaries.

Record exports keep the import column contract (date first, time second,
close-reason code second-to-last) so an exported file can be uploaded
again unchanged.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from aggregation.base import DailySummary, OverallSummary
from app.domain.call_record import CallRecordInput
from app.validators.csv_validator import DATE_FORMAT, TIME_FORMAT

CALL_RECORD_FIELDS: list[str] = [
    "call_date",
    "call_time",
    "call_record_id",
    "close_reason_label",
    "call_close_reason",
    "hour_group",
]

DAILY_SUMMARY_FIELDS: list[str] = [
    "date",
    "hour_group",
    "time_range",
    "qty",
    "te_busy",
    "te_busy_percent",
    "sys_busy",
    "sys_busy_percent",
    "others",
    "others_percent",
]

OVERALL_SUMMARY_FIELDS: list[str] = [
    "date",
    "qty",
    "te_busy",
    "te_busy_percent",
    "sys_busy",
    "sys_busy_percent",
    "others",
    "others_percent",
]


class ExportTooLargeError(ValueError):
    """
    Raised when a record export would exceed the configured row limit.
    """

    def __init__(self, *, max_rows: int) -> None:
        super().__init__(
            f"Export exceeds {max_rows} rows; narrow the date range."
        )
        self.max_rows = max_rows


@dataclass
class ExportResult:
    """
    Flat tabular data ready for CSV serialisation.

    Attributes
    ----------
    filename: Suggested download name.
    rows:     Flat dict per row.
    fields:   Ordered column names.
    """

    filename: str
    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


def call_record_row(record: CallRecordInput) -> dict[str, Any]:
    return {
        "call_date": record.call_date.strftime(DATE_FORMAT),
        "call_time": record.call_time.strftime(TIME_FORMAT),
        "call_record_id": record.call_record_id,
        "close_reason_label": record.close_reason.label,
        "call_close_reason": record.call_close_reason,
        "hour_group": record.hour_group,
    }


def records_export_filename(start_date: date, end_date: date) -> str:
    if start_date == end_date:
        return f"CallRecords_{start_date.isoformat()}.csv"
    return f"CallRecords_{start_date.isoformat()}_to_{end_date.isoformat()}.csv"


def build_call_record_export(
    records: Iterable[CallRecordInput],
    *,
    start_date: date,
    end_date: date,
    max_rows: int | None = None,
) -> ExportResult:
    """
    Shape *records* for CSV. Rows are materialised so the result outlives
    the database session; *max_rows* bounds that memory and stops reading
    at the first row past the limit.
    """

    rows: list[dict[str, Any]] = []
    for record in records:
        if max_rows is not None and len(rows) >= max_rows:
            raise ExportTooLargeError(max_rows=max_rows)
        rows.append(call_record_row(record))
    return ExportResult(
        filename=records_export_filename(start_date, end_date),
        rows=rows,
        fields=list(CALL_RECORD_FIELDS),
    )


def build_daily_summary_export(summary: DailySummary) -> ExportResult:
    """
    One row per hour followed by a TOTAL row carrying the daily figures.
    """

    day = summary.call_date.isoformat()
    rows: list[dict[str, Any]] = [
        {
            "date": day,
            "hour_group": entry.hour_group,
            "time_range": entry.time_range,
            "qty": entry.qty,
            "te_busy": entry.te_busy,
            "te_busy_percent": entry.te_busy_percent,
            "sys_busy": entry.sys_busy,
            "sys_busy_percent": entry.sys_busy_percent,
            "others": entry.others,
            "others_percent": entry.others_percent,
        }
        for entry in summary.hourly_data
    ]
    rows.append(
        {
            "date": day,
            "hour_group": "",
            "time_range": "TOTAL",
            "qty": summary.total_qty,
            "te_busy": summary.total_te_busy,
            "te_busy_percent": summary.avg_te_busy_percent,
            "sys_busy": summary.total_sys_busy,
            "sys_busy_percent": summary.avg_sys_busy_percent,
            "others": summary.total_others,
            "others_percent": summary.avg_others_percent,
        }
    )
    return ExportResult(
        filename=f"Daily_Summary_{day}.csv",
        rows=rows,
        fields=list(DAILY_SUMMARY_FIELDS),
    )


def build_overall_summary_export(summary: OverallSummary) -> ExportResult:
    """
    One row per date with data followed by a TOTAL row for the range.
    """

    rows: list[dict[str, Any]] = [
        {
            "date": day.call_date.isoformat(),
            "qty": day.total_qty,
            "te_busy": day.total_te_busy,
            "te_busy_percent": day.avg_te_busy_percent,
            "sys_busy": day.total_sys_busy,
            "sys_busy_percent": day.avg_sys_busy_percent,
            "others": day.total_others,
            "others_percent": day.avg_others_percent,
        }
        for day in summary.days
    ]
    rows.append(
        {
            "date": "TOTAL",
            "qty": summary.total_qty,
            "te_busy": summary.total_te_busy,
            "te_busy_percent": summary.te_busy_percent,
            "sys_busy": summary.total_sys_busy,
            "sys_busy_percent": summary.sys_busy_percent,
            "others": summary.total_others,
            "others_percent": summary.others_percent,
        }
    )
    start = summary.start_date.isoformat()
    end = summary.end_date.isoformat()
    return ExportResult(
        filename=f"Overall_Summary_{start}_to_{end}.csv",
        rows=rows,
        fields=list(OVERALL_SUMMARY_FIELDS),
    )


def iter_csv(result: ExportResult) -> Iterator[str]:
    """
    Yield *result* as CSV text: the header first, then one chunk per row.
    """

    buf = io.StringIO()
    writer = csv.DictWriter(
        buf,
        fieldnames=result.fields,
        extrasaction="ignore",
        restval="",
        lineterminator="\r\n",
    )
    writer.writeheader()
    yield buf.getvalue()

    for row in result.rows:
        buf.seek(0)
        buf.truncate(0)
        writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
        yield buf.getvalue()

"""
tests/test_export_service.py

Pytest unit tests for CSV export shaping.

Coverage
--------
- Record export columns and filenames
- Exported rows parse back into equal records
- Daily summary export: 24 hourly rows plus TOTAL
- Record export row cap
- Overall summary export: one row per date plus TOTAL
- CSV streaming (header first, None rendered empty)
"""

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from aggregation.daily import build_daily_summary
from aggregation.hourly import build_hourly_summaries
from aggregation.overall import build_overall_summary
from app.services.export_service import (
    CALL_RECORD_FIELDS,
    OVERALL_SUMMARY_FIELDS,
    ExportTooLargeError,
    build_call_record_export,
    build_daily_summary_export,
    build_overall_summary_export,
    iter_csv,
    records_export_filename,
)
from app.validators.csv_validator import CallRecordRowParser
from conftest import FIXED_NOW, make_record

DAY = date(2024, 1, 15)


class TestRecordExport:
    def test_filenames(self) -> None:
        assert records_export_filename(DAY, DAY) == "CallRecords_2024-01-15.csv"
        assert (
            records_export_filename(DAY, date(2024, 1, 31))
            == "CallRecords_2024-01-15_to_2024-01-31.csv"
        )

    def test_row_shape(self) -> None:
        record = dataclasses.replace(make_record(DAY, 8, 30, 45, reason=2), call_record_id=11)

        result = build_call_record_export([record], start_date=DAY, end_date=DAY)

        assert result.fields == CALL_RECORD_FIELDS
        assert result.rows == [
            {
                "call_date": "20240115",
                "call_time": "08:30:45",
                "call_record_id": 11,
                "close_reason_label": "System Busy",
                "call_close_reason": 2,
                "hour_group": 8,
            }
        ]

    def test_exported_rows_parse_back(self) -> None:
        records = [
            make_record(DAY, 0, 0, 1, reason=1),
            make_record(DAY, 13, 14, 15, reason=3),
            make_record(DAY, 23, 59, 59, reason=8),
        ]
        result = build_call_record_export(records, start_date=DAY, end_date=DAY)
        lines = "".join(iter_csv(result)).splitlines()
        parser = CallRecordRowParser(clock=lambda: FIXED_NOW)

        parsed = [parser.parse_line(line, number) for number, line in enumerate(lines[1:], start=2)]

        assert parsed == records

    def test_csv_header_first_and_none_is_blank(self) -> None:
        result = build_call_record_export([make_record(DAY, 8)], start_date=DAY, end_date=DAY)

        chunks = list(iter_csv(result))

        assert chunks[0] == ",".join(CALL_RECORD_FIELDS) + "\r\n"
        assert chunks[1] == "20240115,08:00:00,,TE Busy,1,8\r\n"

    def test_row_cap_allows_exactly_max_rows(self) -> None:
        records = [make_record(DAY, hour) for hour in range(3)]

        result = build_call_record_export(records, start_date=DAY, end_date=DAY, max_rows=3)

        assert len(result.rows) == 3

    def test_row_cap_stops_reading_past_the_limit(self) -> None:
        consumed: list[int] = []

        def records():
            for hour in range(10):
                consumed.append(hour)
                yield make_record(DAY, hour)

        with pytest.raises(ExportTooLargeError) as exc_info:
            build_call_record_export(records(), start_date=DAY, end_date=DAY, max_rows=3)

        assert exc_info.value.max_rows == 3
        assert "3 rows" in str(exc_info.value)
        assert consumed == [0, 1, 2, 3]


class TestDailySummaryExport:
    def test_hourly_rows_and_total(self) -> None:
        records = [make_record(DAY, 9, reason=2), make_record(DAY, 9, 30, reason=2)]
        summary = build_daily_summary(DAY, build_hourly_summaries(DAY, records))

        result = build_daily_summary_export(summary)

        assert result.filename == "Daily_Summary_2024-01-15.csv"
        assert len(result.rows) == 25
        assert result.rows[9]["qty"] == 2
        assert result.rows[9]["sys_busy_percent"] == 100.0
        total = result.rows[-1]
        assert total["time_range"] == "TOTAL"
        assert total["qty"] == 2
        assert total["sys_busy_percent"] == 100.0


class TestOverallSummaryExport:
    def test_day_rows_and_range_total(self) -> None:
        next_day = date(2024, 1, 16)
        daily = [
            build_daily_summary(
                DAY,
                build_hourly_summaries(
                    DAY, [make_record(DAY, 8, reason=1), make_record(DAY, 9, reason=2)]
                ),
            ),
            build_daily_summary(
                next_day, build_hourly_summaries(next_day, [make_record(next_day, 14, reason=3)])
            ),
        ]
        summary = build_overall_summary(DAY, date(2024, 1, 31), daily)

        result = build_overall_summary_export(summary)

        assert result.filename == "Overall_Summary_2024-01-15_to_2024-01-31.csv"
        assert result.fields == OVERALL_SUMMARY_FIELDS
        assert [row["date"] for row in result.rows] == ["2024-01-15", "2024-01-16", "TOTAL"]
        assert result.rows[0]["qty"] == 2
        assert result.rows[0]["te_busy_percent"] == 50.0
        total = result.rows[-1]
        assert total["qty"] == 3
        assert total["others"] == 1
        assert total["others_percent"] == 33.3

    def test_empty_range_has_only_total(self) -> None:
        summary = build_overall_summary(DAY, DAY, [])

        result = build_overall_summary_export(summary)

        assert result.rows == [
            {
                "date": "TOTAL",
                "qty": 0,
                "te_busy": 0,
                "te_busy_percent": 0.0,
                "sys_busy": 0,
                "sys_busy_percent": 0.0,
                "others": 0,
                "others_percent": 0.0,
            }
        ]

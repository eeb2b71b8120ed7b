"""
tests/conftest.py

Shared fixtures: an in-memory CallRecordStore so service and router tests
run without a database.
"""

from __future__ import annotations

import dataclasses
from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, time, timezone

import pytest

from aggregation.base import DailySummary, OverallSummary
from aggregation.daily import build_daily_summary
from aggregation.hourly import build_hourly_summaries
from aggregation.overall import build_overall_summary
from app.domain.call_record import CallRecordInput, RecordPage, RecordQuery, UploadResult
from app.services.call_record_store import CallRecordPersistenceError
from app.services.export_service import ExportResult, build_call_record_export

FIXED_NOW = datetime(2024, 1, 16, 12, 0, tzinfo=timezone.utc)


class InMemoryCallRecordStore:
    """
    List-backed ``CallRecordStore`` with call bookkeeping for assertions.
    """

    def __init__(
        self,
        *,
        fail_imports: bool = False,
        fail_on_batch: int | None = None,
        export_max_rows: int | None = None,
    ) -> None:
        self.records: list[CallRecordInput] = []
        self.import_calls: list[int] = []
        self._fail_imports = fail_imports
        self._fail_on_batch = fail_on_batch
        self._export_max_rows = export_max_rows
        self._next_id = 1

    def import_records(self, records: Sequence[CallRecordInput]) -> UploadResult:
        self.import_calls.append(len(records))
        if self._fail_imports or len(self.import_calls) == self._fail_on_batch:
            raise CallRecordPersistenceError("Failed to persist valid CSV rows.")
        for record in records:
            self.records.append(dataclasses.replace(record, call_record_id=self._next_id))
            self._next_id += 1
        return UploadResult(
            total_records=len(records),
            successful_records=len(records),
            failed_records=0,
        )

    def get_daily_summary(self, call_date: date) -> DailySummary | None:
        day = [record for record in self.records if record.call_date == call_date]
        if not day:
            return None
        return build_daily_summary(call_date, build_hourly_summaries(call_date, day))

    def get_overall_summary(self, start_date: date, end_date: date) -> OverallSummary:
        grouped: dict[date, list[CallRecordInput]] = defaultdict(list)
        for record in self.records:
            if start_date <= record.call_date <= end_date:
                grouped[record.call_date].append(record)
        daily = [
            build_daily_summary(day, build_hourly_summaries(day, records))
            for day, records in grouped.items()
        ]
        return build_overall_summary(start_date, end_date, daily)

    def export_range(self, start_date: date, end_date: date) -> ExportResult:
        if start_date > end_date:
            raise ValueError("start_date must not be later than end_date.")
        selected = sorted(
            (r for r in self.records if start_date <= r.call_date <= end_date),
            key=lambda r: (r.call_date, r.call_time, r.call_record_id),
        )
        return build_call_record_export(
            selected,
            start_date=start_date,
            end_date=end_date,
            max_rows=self._export_max_rows,
        )

    def list_records(self, query: RecordQuery) -> RecordPage:
        selected = [
            r
            for r in self.records
            if (query.start_date is None or r.call_date >= query.start_date)
            and (query.end_date is None or r.call_date <= query.end_date)
            and (query.call_close_reason is None or r.call_close_reason == query.call_close_reason)
            and (query.hour_group is None or r.hour_group == query.hour_group)
        ]
        selected.sort(
            key=lambda r: (getattr(r, query.sort_by), r.call_record_id),
            reverse=query.sort_desc,
        )
        return RecordPage(
            records=selected[query.offset : query.offset + query.page_size],
            page=query.page,
            page_size=query.page_size,
            total_count=len(selected),
        )

    def delete_for_date(self, call_date: date) -> int:
        before = len(self.records)
        self.records = [r for r in self.records if r.call_date != call_date]
        return before - len(self.records)


def make_record(
    call_date: date,
    hh: int,
    mm: int = 0,
    ss: int = 0,
    *,
    reason: int = 1,
) -> CallRecordInput:
    return CallRecordInput(
        call_date=call_date,
        call_time=time(hh, mm, ss),
        call_close_reason=reason,
        hour_group=hh,
        created_at=FIXED_NOW,
    )


@pytest.fixture()
def store() -> InMemoryCallRecordStore:
    return InMemoryCallRecordStore()

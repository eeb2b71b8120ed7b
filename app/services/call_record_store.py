"""
app/services/call_record_store.py

Persistence/query collaborator for the call-record pipeline.

``CallRecordStore`` is the contract the ingestion controller and the HTTP
layer depend on. ``SQLCallRecordStore`` implements it on PostgreSQL:
records are written through :class:`CallRecordRepository` and summaries are
built from grouped counts, so a day's rows are never loaded into memory.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aggregation.base import DailySummary, OverallSummary
from aggregation.daily import build_daily_summary
from aggregation.hourly import build_hourly_summaries_from_counts
from aggregation.overall import build_overall_summary
from app.domain.call_record import CallRecordInput, RecordPage, RecordQuery, UploadResult
from app.repositories.call_record_repository import CallRecordRepository
from app.services.export_service import ExportResult, build_call_record_export

logger = logging.getLogger(__name__)


class CallRecordPersistenceError(RuntimeError):
    """
    Raised when valid rows cannot be persisted.
    """


class CallRecordStore(Protocol):
    """
    Storage contract used by ingestion and the API.
    """

    def import_records(self, records: Sequence[CallRecordInput]) -> UploadResult:
        ...

    def get_daily_summary(self, call_date: date) -> DailySummary | None:
        ...

    def export_range(self, start_date: date, end_date: date) -> ExportResult:
        ...

    def get_overall_summary(self, start_date: date, end_date: date) -> OverallSummary:
        ...

    def list_records(self, query: RecordQuery) -> RecordPage:
        ...

    def delete_for_date(self, call_date: date) -> int:
        ...


class SQLCallRecordStore:
    """
    SQLAlchemy-backed ``CallRecordStore``.

    Parameters
    ----------
    session:
        Active SQLAlchemy session. The caller controls its lifecycle; this
        class commits or rolls back its own writes.
    batch_size:
        Rows per INSERT statement.
    export_max_rows:
        Upper bound on rows in one record export; ``None`` means unbounded.
    """

    def __init__(
        self,
        session: Session,
        *,
        batch_size: int = 1000,
        export_max_rows: int | None = None,
    ) -> None:
        self._session = session
        self._repository = CallRecordRepository(session)
        self._batch_size = max(1, batch_size)
        self._export_max_rows = export_max_rows

    def import_records(self, records: Sequence[CallRecordInput]) -> UploadResult:
        if not records:
            return UploadResult(total_records=0, successful_records=0, failed_records=0)

        try:
            inserted = self._repository.bulk_insert(records, batch_size=self._batch_size)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise CallRecordPersistenceError("Failed to persist valid CSV rows.") from exc

        failed = len(records) - inserted
        errors = [f"{failed} record(s) were not stored by the database."] if failed else []
        return UploadResult(
            total_records=len(records),
            successful_records=inserted,
            failed_records=failed,
            errors=errors,
        )

    def get_daily_summary(self, call_date: date) -> DailySummary | None:
        counts = self._repository.count_by_hour_and_reason(call_date)
        if not counts:
            logger.debug("get_daily_summary date=%s → no records", call_date.isoformat())
            return None
        hourly = build_hourly_summaries_from_counts(call_date, counts)
        return build_daily_summary(call_date, hourly)

    def get_overall_summary(self, start_date: date, end_date: date) -> OverallSummary:
        grouped: dict[date, list[tuple[int, int, int]]] = defaultdict(list)
        for call_date, hour, code, count in self._repository.count_by_date_hour_and_reason(
            start_date, end_date
        ):
            grouped[call_date].append((hour, code, count))

        daily = [
            build_daily_summary(call_date, build_hourly_summaries_from_counts(call_date, counts))
            for call_date, counts in grouped.items()
        ]
        return build_overall_summary(start_date, end_date, daily)

    def export_range(self, start_date: date, end_date: date) -> ExportResult:
        if start_date > end_date:
            raise ValueError("start_date must not be later than end_date.")
        result = build_call_record_export(
            self._repository.iter_range(start_date, end_date),
            start_date=start_date,
            end_date=end_date,
            max_rows=self._export_max_rows,
        )
        logger.info(
            "Exported call records start=%s end=%s rows=%d",
            start_date.isoformat(),
            end_date.isoformat(),
            len(result.rows),
        )
        return result

    def list_records(self, query: RecordQuery) -> RecordPage:
        return self._repository.list_page(query)

    def delete_for_date(self, call_date: date) -> int:
        try:
            deleted = self._repository.delete_for_date(call_date)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise CallRecordPersistenceError(
                f"Failed to delete call records for {call_date.isoformat()}."
            ) from exc
        logger.info("Deleted call records date=%s rows=%d", call_date.isoformat(), deleted)
        return deleted

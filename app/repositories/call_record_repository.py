"""
app/repositories/call_record_repository.py

Persistence layer for call records.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import date
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session

from app.domain.call_record import CallRecordInput, RecordPage, RecordQuery
from db.models.call_record import CallRecord

_DEFAULT_BATCH_SIZE = 1000
_STREAM_CHUNK_SIZE = 5000


def to_domain(row: CallRecord) -> CallRecordInput:
    return CallRecordInput(
        call_date=row.call_date,
        call_time=row.call_time,
        call_close_reason=row.call_close_reason,
        hour_group=row.hour_group,
        created_at=row.created_at,
        call_record_id=row.id,
    )


class CallRecordRepository:
    """
    Repository for batch persistence and grouped reads of call records.

    The caller owns the session and its transaction boundaries.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def bulk_insert(
        self,
        rows: Sequence[CallRecordInput],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert parsed records with multi-row INSERT ... RETURNING id.
        """

        if not rows:
            return 0

        payloads: list[dict[str, Any]] = [
            {
                "call_date": row.call_date,
                "call_time": row.call_time,
                "call_close_reason": row.call_close_reason,
                "hour_group": row.hour_group,
                "created_at": row.created_at,
            }
            for row in rows
        ]

        size = max(1, batch_size)
        inserted = 0
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = insert(CallRecord).values(chunk).returning(CallRecord.id)
            inserted += len(self._session.scalars(stmt).all())
        return inserted

    def count_by_hour_and_reason(self, call_date: date) -> list[tuple[int, int, int]]:
        """
        Return ``(hour_group, call_close_reason, count)`` rows for one date.

        Single grouped scan::

            SELECT hour_group, call_close_reason, COUNT(*)
            FROM   call_records
            WHERE  call_date = :call_date
            GROUP BY hour_group, call_close_reason
        """

        stmt = (
            select(CallRecord.hour_group, CallRecord.call_close_reason, func.count())
            .where(CallRecord.call_date == call_date)
            .group_by(CallRecord.hour_group, CallRecord.call_close_reason)
        )
        return [(int(hour), int(code), int(count)) for hour, code, count in self._session.execute(stmt)]

    def count_by_date_hour_and_reason(
        self,
        start_date: date,
        end_date: date,
    ) -> list[tuple[date, int, int, int]]:
        """
        Return ``(call_date, hour_group, call_close_reason, count)`` rows
        for ``[start_date, end_date]``.
        """

        stmt = (
            select(
                CallRecord.call_date,
                CallRecord.hour_group,
                CallRecord.call_close_reason,
                func.count(),
            )
            .where(CallRecord.call_date >= start_date, CallRecord.call_date <= end_date)
            .group_by(CallRecord.call_date, CallRecord.hour_group, CallRecord.call_close_reason)
        )
        return [
            (call_date, int(hour), int(code), int(count))
            for call_date, hour, code, count in self._session.execute(stmt)
        ]

    def list_page(self, query: RecordQuery) -> RecordPage:
        conditions = []
        if query.start_date is not None:
            conditions.append(CallRecord.call_date >= query.start_date)
        if query.end_date is not None:
            conditions.append(CallRecord.call_date <= query.end_date)
        if query.call_close_reason is not None:
            conditions.append(CallRecord.call_close_reason == query.call_close_reason)
        if query.hour_group is not None:
            conditions.append(CallRecord.hour_group == query.hour_group)

        total = self._session.scalar(select(func.count()).select_from(CallRecord).where(*conditions))

        sort_column = getattr(CallRecord, query.sort_by)
        ordering = sort_column.desc() if query.sort_desc else sort_column.asc()
        stmt = (
            select(CallRecord)
            .where(*conditions)
            .order_by(ordering, CallRecord.id.asc())
            .offset(query.offset)
            .limit(query.page_size)
        )
        rows = self._session.scalars(stmt).all()

        return RecordPage(
            records=[to_domain(row) for row in rows],
            page=query.page,
            page_size=query.page_size,
            total_count=int(total or 0),
        )

    def iter_range(self, start_date: date, end_date: date) -> Iterator[CallRecordInput]:
        """
        Stream records of ``[start_date, end_date]`` ordered by date, time, id.
        """

        stmt = (
            select(CallRecord)
            .where(CallRecord.call_date >= start_date, CallRecord.call_date <= end_date)
            .order_by(CallRecord.call_date, CallRecord.call_time, CallRecord.id)
            .execution_options(yield_per=_STREAM_CHUNK_SIZE)
        )
        for row in self._session.scalars(stmt):
            yield to_domain(row)

    def delete_for_date(self, call_date: date) -> int:
        result = self._session.execute(
            delete(CallRecord).where(CallRecord.call_date == call_date)
        )
        return int(result.rowcount or 0)

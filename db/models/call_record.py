"""
db/models/call_record.py

CallRecord model: one call-close event imported from an uploaded CSV file.
"""

from __future__ import annotations

from datetime import date, time

from sqlalchemy import BigInteger, CheckConstraint, Date, Identity, Index, Integer, SmallInteger, Time
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin


class CallRecord(Base, CreatedAtMixin):
    """
    Persisted call-close event.

    hour_group is stored rather than derived in SQL so daily summaries can
    group on an indexed column.
    """

    __tablename__ = "call_records"

    id: Mapped[int] = mapped_column(
        BigInteger,
        Identity(always=False),
        primary_key=True,
    )

    call_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Calendar date of the call (CSV column 1, YYYYMMDD)",
    )

    call_time: Mapped[time] = mapped_column(
        Time(timezone=False),
        nullable=False,
        comment="Time of day of the call (CSV column 2, HH:mm:ss)",
    )

    call_close_reason: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1 = TE Busy, 2 = System Busy, 3 = Others, anything else = unknown",
    )

    hour_group: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        comment="Hour of call_time, 0-23",
    )

    # ── Indexes / constraints ──────────────────────────────────────────────────

    __table_args__ = (
        CheckConstraint("hour_group >= 0 AND hour_group <= 23", name="hour_group_range"),
        Index("ix_call_records_call_date", "call_date"),
        Index("ix_call_records_call_date_hour_group", "call_date", "hour_group"),
        Index("ix_call_records_call_close_reason", "call_close_reason"),
    )

    def __repr__(self) -> str:
        return (
            f"<CallRecord id={self.id} call_date={self.call_date} "
            f"call_time={self.call_time} reason={self.call_close_reason}>"
        )

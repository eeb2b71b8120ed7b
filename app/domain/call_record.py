"""
app/domain/call_record.py

Domain models used by the call-record ingestion and reporting flows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from enum import Enum


class CloseReasonCategory(str, Enum):
    """
    Closed set of close-reason categories.
    """

    TE_BUSY = "te_busy"
    SYSTEM_BUSY = "system_busy"
    OTHERS = "others"
    UNKNOWN = "unknown"


_CATEGORY_BY_CODE: dict[int, CloseReasonCategory] = {
    1: CloseReasonCategory.TE_BUSY,
    2: CloseReasonCategory.SYSTEM_BUSY,
    3: CloseReasonCategory.OTHERS,
}

_LABEL_BY_CATEGORY: dict[CloseReasonCategory, str] = {
    CloseReasonCategory.TE_BUSY: "TE Busy",
    CloseReasonCategory.SYSTEM_BUSY: "System Busy",
    CloseReasonCategory.OTHERS: "Others",
}


@dataclass(frozen=True)
class CloseReason:
    """
    A raw close-reason code together with its category.

    Codes outside {1, 2, 3} are kept as ``UNKNOWN`` and still counted in the
    ``others`` bucket by the aggregation pipeline.
    """

    code: int

    @property
    def category(self) -> CloseReasonCategory:
        return _CATEGORY_BY_CODE.get(self.code, CloseReasonCategory.UNKNOWN)

    @property
    def bucket(self) -> CloseReasonCategory:
        """Category used for counting; unknown codes fall into OTHERS."""
        category = self.category
        if category is CloseReasonCategory.UNKNOWN:
            return CloseReasonCategory.OTHERS
        return category

    @property
    def is_known(self) -> bool:
        return self.category is not CloseReasonCategory.UNKNOWN

    @property
    def label(self) -> str:
        if not self.is_known:
            return f"Unknown ({self.code})"
        return _LABEL_BY_CATEGORY[self.category]


@dataclass(frozen=True)
class CallRecordInput:
    """
    One observed call-close event.

    ``call_record_id`` is ``None`` until the record has been persisted.
    """

    call_date: date
    call_time: time
    call_close_reason: int
    hour_group: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    call_record_id: int | None = None

    @property
    def close_reason(self) -> CloseReason:
        return CloseReason(self.call_close_reason)


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of one CSV ingestion (or of one persisted batch).
    """

    total_records: int
    successful_records: int
    failed_records: int
    errors: list[str] = field(default_factory=list)
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.successful_records + self.failed_records != self.total_records:
            raise ValueError(
                "UploadResult counts do not add up: "
                f"{self.successful_records} + {self.failed_records} != {self.total_records}."
            )


SORTABLE_FIELDS: tuple[str, ...] = (
    "call_date",
    "call_time",
    "call_close_reason",
    "hour_group",
    "created_at",
)


@dataclass(frozen=True)
class RecordQuery:
    """
    Filters, ordering and paging for record listing.
    """

    start_date: date | None = None
    end_date: date | None = None
    call_close_reason: int | None = None
    hour_group: int | None = None
    sort_by: str = "call_date"
    sort_desc: bool = False
    page: int = 1
    page_size: int = 15

    def __post_init__(self) -> None:
        if self.sort_by not in SORTABLE_FIELDS:
            raise ValueError(
                f"Unsupported sort_by {self.sort_by!r}. Allowed: {', '.join(SORTABLE_FIELDS)}."
            )
        if self.page < 1:
            raise ValueError("page must be >= 1.")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1.")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be later than end_date.")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class RecordPage:
    records: list[CallRecordInput]
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

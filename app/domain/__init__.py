"""
app/domain package marker.
"""

from app.domain.call_record import (
    CallRecordInput,
    CloseReason,
    CloseReasonCategory,
    RecordPage,
    RecordQuery,
    UploadResult,
)

__all__ = [
    "CallRecordInput",
    "CloseReason",
    "CloseReasonCategory",
    "RecordPage",
    "RecordQuery",
    "UploadResult",
]

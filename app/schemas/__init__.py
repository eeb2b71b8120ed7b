"""
app/schemas package marker.
"""

from app.schemas.call_records import (
    CallRecordResponse,
    DailySummaryResponse,
    DayTotalsResponse,
    DeleteResultResponse,
    HourlySummaryResponse,
    HourProfileResponse,
    OverallSummaryResponse,
    RecordPageResponse,
    UploadResultResponse,
)

__all__ = [
    "CallRecordResponse",
    "DailySummaryResponse",
    "DayTotalsResponse",
    "DeleteResultResponse",
    "HourlySummaryResponse",
    "HourProfileResponse",
    "OverallSummaryResponse",
    "RecordPageResponse",
    "UploadResultResponse",
]

"""
app/schemas/call_records.py

Response schemas for the call-record endpoints.
"""

from __future__ import annotations

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field


class UploadResultResponse(BaseModel):
    """
    API response model for one CSV upload.
    """

    total_records: int = Field(..., ge=0)
    successful_records: int = Field(..., ge=0)
    failed_records: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    uploaded_at: datetime
    total_time_ms: int = Field(..., ge=0)


class HourlySummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    call_date: date
    hour_group: int = Field(..., ge=0, le=23)
    time_range: str
    qty: int = Field(..., ge=0)
    te_busy: int = Field(..., ge=0)
    te_busy_percent: float = Field(..., ge=0, le=100)
    sys_busy: int = Field(..., ge=0)
    sys_busy_percent: float = Field(..., ge=0, le=100)
    others: int = Field(..., ge=0)
    others_percent: float = Field(..., ge=0, le=100)


class DailySummaryResponse(BaseModel):
    """
    API response model for one day's statistics (always 24 hourly entries).
    """

    model_config = ConfigDict(from_attributes=True)

    call_date: date
    hourly_data: list[HourlySummaryResponse]
    total_qty: int = Field(..., ge=0)
    total_te_busy: int = Field(..., ge=0)
    total_sys_busy: int = Field(..., ge=0)
    total_others: int = Field(..., ge=0)
    avg_te_busy_percent: float = Field(..., ge=0, le=100)
    avg_sys_busy_percent: float = Field(..., ge=0, le=100)
    avg_others_percent: float = Field(..., ge=0, le=100)


class HourProfileResponse(BaseModel):
    hour_group: int = Field(..., ge=0, le=23)
    time_range: str
    qty: int = Field(..., ge=0)
    te_busy: int = Field(..., ge=0)
    sys_busy: int = Field(..., ge=0)
    others: int = Field(..., ge=0)


class DayTotalsResponse(BaseModel):
    call_date: date
    total_qty: int = Field(..., ge=0)
    total_te_busy: int = Field(..., ge=0)
    total_sys_busy: int = Field(..., ge=0)
    total_others: int = Field(..., ge=0)


class OverallSummaryResponse(BaseModel):
    """
    API response model for statistics across a date range.
    """

    start_date: date
    end_date: date
    days: list[DayTotalsResponse] = Field(default_factory=list)
    hourly_profile: list[HourProfileResponse]
    total_qty: int = Field(..., ge=0)
    total_te_busy: int = Field(..., ge=0)
    total_sys_busy: int = Field(..., ge=0)
    total_others: int = Field(..., ge=0)
    te_busy_percent: float = Field(..., ge=0, le=100)
    sys_busy_percent: float = Field(..., ge=0, le=100)
    others_percent: float = Field(..., ge=0, le=100)


class CallRecordResponse(BaseModel):
    call_record_id: int | None = None
    call_date: date
    call_time: time
    call_close_reason: int
    close_reason_label: str
    hour_group: int = Field(..., ge=0, le=23)
    created_at: datetime


class RecordPageResponse(BaseModel):
    """
    API response model for one page of the record listing.
    """

    records: list[CallRecordResponse] = Field(default_factory=list)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_count: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    has_next: bool
    has_previous: bool


class DeleteResultResponse(BaseModel):
    call_date: date
    deleted_records: int = Field(..., ge=0)

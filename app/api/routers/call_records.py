"""
app/api/routers/call_records.py

Call-record HTTP endpoints: CSV upload, daily/overall summaries, record
listing, CSV exports and day deletion.

All aggregation lives in the ``aggregation`` package and all persistence in
the ``CallRecordStore``; the router only handles HTTP plumbing (parameter
validation, serialisation, error mapping).
"""

from __future__ import annotations

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from aggregation.base import OverallSummary, hour_range_label
from app.api.dependencies import get_call_record_store, get_csv_upload
from app.config import get_query_settings
from app.domain.call_record import CallRecordInput, RecordQuery
from app.schemas.call_records import (
    CallRecordResponse,
    DailySummaryResponse,
    DayTotalsResponse,
    DeleteResultResponse,
    HourProfileResponse,
    OverallSummaryResponse,
    RecordPageResponse,
    UploadResultResponse,
)
from app.services.call_record_store import CallRecordPersistenceError, CallRecordStore
from app.services.csv_ingestion_service import (
    CallRecordIngestionService,
    CSVDecodeError,
    FileTooLargeError,
    get_csv_ingestion_service,
)
from app.services.export_service import (
    ExportResult,
    build_daily_summary_export,
    build_overall_summary_export,
    iter_csv,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/call-records", tags=["call-records"])

_SORT_DIRECTIONS = frozenset({"asc", "desc"})
_SORT_ALIASES = {
    "callDate": "call_date",
    "callTime": "call_time",
    "callCloseReason": "call_close_reason",
    "hourGroup": "hour_group",
    "createdAt": "created_at",
}


# ---------------------------------------------------------------------------
# Serialisation helpers (no business logic)
# ---------------------------------------------------------------------------


def _to_csv_streaming(result: ExportResult) -> StreamingResponse:
    """Stream *result* as a UTF-8 CSV file download."""
    return StreamingResponse(
        content=iter_csv(result),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Row-Count": str(len(result.rows)),
        },
    )


def _record_response(record: CallRecordInput) -> CallRecordResponse:
    return CallRecordResponse(
        call_record_id=record.call_record_id,
        call_date=record.call_date,
        call_time=record.call_time,
        call_close_reason=record.call_close_reason,
        close_reason_label=record.close_reason.label,
        hour_group=record.hour_group,
        created_at=record.created_at,
    )


def _overall_response(summary: OverallSummary) -> OverallSummaryResponse:
    return OverallSummaryResponse(
        start_date=summary.start_date,
        end_date=summary.end_date,
        days=[
            DayTotalsResponse(
                call_date=day.call_date,
                total_qty=day.total_qty,
                total_te_busy=day.total_te_busy,
                total_sys_busy=day.total_sys_busy,
                total_others=day.total_others,
            )
            for day in summary.days
        ],
        hourly_profile=[
            HourProfileResponse(
                hour_group=hour,
                time_range=hour_range_label(hour),
                qty=tally.qty,
                te_busy=tally.te_busy,
                sys_busy=tally.sys_busy,
                others=tally.others,
            )
            for hour, tally in enumerate(summary.hourly_profile)
        ],
        total_qty=summary.total_qty,
        total_te_busy=summary.total_te_busy,
        total_sys_busy=summary.total_sys_busy,
        total_others=summary.total_others,
        te_busy_percent=summary.te_busy_percent,
        sys_busy_percent=summary.sys_busy_percent,
        others_percent=summary.others_percent,
    )


def _validate_range(start_date: date, end_date: date, *, max_days: int | None = None) -> None:
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be later than end_date.",
        )
    if max_days is not None and (end_date - start_date).days + 1 > max_days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Date range must not exceed {max_days} days.",
        )


def _export_range(store: CallRecordStore, start_date: date, end_date: date) -> StreamingResponse:
    try:
        result = store.export_range(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_csv_streaming(result)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post("/import-csv", response_model=UploadResultResponse)
def import_csv(
    file: UploadFile = Depends(get_csv_upload),
    store: CallRecordStore = Depends(get_call_record_store),
    ingestion_service: CallRecordIngestionService = Depends(get_csv_ingestion_service),
) -> UploadResultResponse:
    """
    Ingest one CSV file of call-close records.

    Bad rows are reported in ``errors`` and do not abort the upload.
    """

    started = time.perf_counter()
    try:
        result = ingestion_service.ingest_csv(upload_file=file, store=store)
    except FileTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except CSVDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CallRecordPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist valid CSV rows.",
        ) from exc
    finally:
        file.file.close()

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "CSV upload filename=%r total=%d successful=%d failed=%d elapsed_ms=%d",
        file.filename,
        result.total_records,
        result.successful_records,
        result.failed_records,
        elapsed_ms,
    )
    return UploadResultResponse(
        total_records=result.total_records,
        successful_records=result.successful_records,
        failed_records=result.failed_records,
        errors=list(result.errors),
        uploaded_at=result.uploaded_at,
        total_time_ms=elapsed_ms,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("", response_model=RecordPageResponse)
def list_records(
    start_date: date | None = Query(
        default=None,
        alias="startDate",
        description="Inclusive start date (YYYY-MM-DD).",
    ),
    end_date: date | None = Query(
        default=None,
        alias="endDate",
        description="Inclusive end date (YYYY-MM-DD).",
    ),
    call_close_reason: int | None = Query(
        default=None,
        alias="callCloseReason",
        description="Exact close-reason code.",
    ),
    hour_group: int | None = Query(default=None, alias="hourGroup", ge=0, le=23),
    sort_by: str = Query(
        default="call_date",
        alias="sortBy",
        description="call_date, call_time, call_close_reason, hour_group or created_at (camelCase accepted).",
    ),
    sort_dir: str = Query(default="asc", alias="sortDir", description='"asc" or "desc".'),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, alias="pageSize", ge=1),
    store: CallRecordStore = Depends(get_call_record_store),
) -> RecordPageResponse:
    """
    List stored records with optional filters, ordering and paging.
    """
    settings = get_query_settings()
    effective_page_size = page_size or settings.default_page_size
    if effective_page_size > settings.max_page_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"page_size must not exceed {settings.max_page_size}.",
        )
    direction = sort_dir.strip().lower()
    if direction not in _SORT_DIRECTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort_dir {sort_dir!r}. Must be one of: {sorted(_SORT_DIRECTIONS)}.",
        )

    try:
        query = RecordQuery(
            start_date=start_date,
            end_date=end_date,
            call_close_reason=call_close_reason,
            hour_group=hour_group,
            sort_by=_SORT_ALIASES.get(sort_by, sort_by),
            sort_desc=direction == "desc",
            page=page,
            page_size=effective_page_size,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    result = store.list_records(query)
    return RecordPageResponse(
        records=[_record_response(record) for record in result.records],
        page=result.page,
        page_size=result.page_size,
        total_count=result.total_count,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_previous=result.has_previous,
    )


@router.get("/summary/daily/{call_date}", response_model=DailySummaryResponse)
def get_daily_summary(
    call_date: date,
    store: CallRecordStore = Depends(get_call_record_store),
) -> DailySummaryResponse:
    """
    Per-hour and whole-day statistics for one date.
    """
    summary = store.get_daily_summary(call_date)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No call records found for {call_date.isoformat()}.",
        )
    return DailySummaryResponse.model_validate(summary, from_attributes=True)


@router.get("/summary/overall", response_model=OverallSummaryResponse)
def get_overall_summary(
    start_date: date = Query(..., alias="startDate", description="Inclusive start date (YYYY-MM-DD)."),
    end_date: date = Query(..., alias="endDate", description="Inclusive end date (YYYY-MM-DD)."),
    store: CallRecordStore = Depends(get_call_record_store),
) -> OverallSummaryResponse:
    """
    Totals, percentages and hour-of-day profile across a date range.
    """
    _validate_range(start_date, end_date)
    try:
        summary = store.get_overall_summary(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _overall_response(summary)


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


@router.get("/export/csv", summary="Export call records in a date range")
def export_csv(
    start_date: date = Query(..., alias="startDate", description="Inclusive start date (YYYY-MM-DD)."),
    end_date: date = Query(..., alias="endDate", description="Inclusive end date (YYYY-MM-DD)."),
    store: CallRecordStore = Depends(get_call_record_store),
) -> StreamingResponse:
    """
    Download every record in the range as a CSV that can be uploaded again.
    """
    _validate_range(start_date, end_date, max_days=get_query_settings().export_max_range_days)
    return _export_range(store, start_date, end_date)


@router.get("/export/csv/{call_date}", summary="Export one day's call records")
def export_csv_for_date(
    call_date: date,
    store: CallRecordStore = Depends(get_call_record_store),
) -> StreamingResponse:
    return _export_range(store, call_date, call_date)


@router.get("/export/daily-summary/{call_date}", summary="Export one day's hourly summary")
def export_daily_summary(
    call_date: date,
    store: CallRecordStore = Depends(get_call_record_store),
) -> StreamingResponse:
    summary = store.get_daily_summary(call_date)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No call records found for {call_date.isoformat()}.",
        )
    return _to_csv_streaming(build_daily_summary_export(summary))


@router.get("/export/overall-summary", summary="Export range statistics per day")
def export_overall_summary(
    start_date: date = Query(..., alias="startDate", description="Inclusive start date (YYYY-MM-DD)."),
    end_date: date = Query(..., alias="endDate", description="Inclusive end date (YYYY-MM-DD)."),
    store: CallRecordStore = Depends(get_call_record_store),
) -> StreamingResponse:
    """
    One row per date with data plus a TOTAL row for the whole range.
    """
    _validate_range(start_date, end_date)
    try:
        summary = store.get_overall_summary(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_csv_streaming(build_overall_summary_export(summary))


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


@router.delete("/{call_date}", response_model=DeleteResultResponse)
def delete_for_date(
    call_date: date,
    store: CallRecordStore = Depends(get_call_record_store),
) -> DeleteResultResponse:
    """
    Remove every record of one date.
    """
    try:
        deleted = store.delete_for_date(call_date)
    except CallRecordPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to delete call records.",
        ) from exc
    if deleted == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No call records found for {call_date.isoformat()}.",
        )
    return DeleteResultResponse(call_date=call_date, deleted_records=deleted)

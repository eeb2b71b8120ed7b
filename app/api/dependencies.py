"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and store wiring.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config import get_csv_ingestion_settings, get_query_settings
from app.services.call_record_store import CallRecordStore, SQLCallRecordStore
from db.session import get_db

UPLOAD_EXTENSIONS = (".csv", ".txt")

CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV/TXT file by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(UPLOAD_EXTENSIONS)
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV or TXT files are allowed.",
        )

    return file


def get_call_record_store(db: Session = Depends(get_db)) -> CallRecordStore:
    """
    Request-scoped SQL store bound to the request's session.
    """

    return SQLCallRecordStore(
        db,
        batch_size=get_csv_ingestion_settings().batch_size,
        export_max_rows=get_query_settings().export_max_rows,
    )

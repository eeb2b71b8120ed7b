"""
app/services package marker.
"""

from app.services.export_service import (
    ExportResult,
    build_call_record_export,
    build_daily_summary_export,
    iter_csv,
)
from app.services.call_record_store import (
    CallRecordPersistenceError,
    CallRecordStore,
    SQLCallRecordStore,
)
from app.services.csv_ingestion_service import (
    CallRecordIngestionService,
    CSVDecodeError,
    FileTooLargeError,
    get_csv_ingestion_service,
)

__all__ = [
    "build_call_record_export",
    "build_daily_summary_export",
    "CallRecordIngestionService",
    "CallRecordPersistenceError",
    "CallRecordStore",
    "CSVDecodeError",
    "ExportResult",
    "FileTooLargeError",
    "get_csv_ingestion_service",
    "iter_csv",
    "SQLCallRecordStore",
]

"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_MAX_FILE_BYTES = 100 * 1024 * 1024
DEFAULT_EXPORT_MAX_ROWS = 1_000_000


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class CSVIngestionSettings:
    """
    Runtime settings for call-record CSV ingestion.
    """

    batch_size: int = 1000
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    log_validation_errors: bool = True
    # 0 keeps every row error
    max_validation_errors: int = 0


@dataclass(frozen=True)
class QuerySettings:
    """
    Limits for record listing and exports.
    """

    default_page_size: int = 15
    max_page_size: int = 500
    export_max_range_days: int = 366
    export_max_rows: int = DEFAULT_EXPORT_MAX_ROWS


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Connection pool behaviour for the PostgreSQL engine.
    """

    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800


@lru_cache(maxsize=1)
def get_csv_ingestion_settings() -> CSVIngestionSettings:
    """
    Return cached CSV ingestion settings from environment variables.
    """

    return CSVIngestionSettings(
        batch_size=max(1, _get_int_env("CSV_INGEST_BATCH_SIZE", 1000)),
        max_file_bytes=max(1, _get_int_env("CSV_INGEST_MAX_FILE_BYTES", DEFAULT_MAX_FILE_BYTES)),
        log_validation_errors=_get_bool_env("CSV_INGEST_LOG_VALIDATION_ERRORS", True),
        max_validation_errors=max(0, _get_int_env("CSV_INGEST_MAX_VALIDATION_ERRORS", 0)),
    )


@lru_cache(maxsize=1)
def get_query_settings() -> QuerySettings:
    """
    Return cached listing/export limits from environment variables.
    """

    max_page_size = max(1, _get_int_env("RECORDS_MAX_PAGE_SIZE", 500))
    return QuerySettings(
        default_page_size=min(max_page_size, max(1, _get_int_env("RECORDS_DEFAULT_PAGE_SIZE", 15))),
        max_page_size=max_page_size,
        export_max_range_days=max(1, _get_int_env("EXPORT_MAX_RANGE_DAYS", 366)),
        export_max_rows=max(1, _get_int_env("EXPORT_MAX_ROWS", DEFAULT_EXPORT_MAX_ROWS)),
    )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
    """
    Return cached engine pool settings from environment variables.
    """

    return DatabaseSettings(
        echo=_get_bool_env("SQL_ECHO", False),
        pool_size=max(1, _get_int_env("DB_POOL_SIZE", 5)),
        max_overflow=max(0, _get_int_env("DB_MAX_OVERFLOW", 10)),
        pool_recycle_seconds=max(1, _get_int_env("DB_POOL_RECYCLE", 1800)),
    )

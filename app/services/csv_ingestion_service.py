"""
app/services/csv_ingestion_service.py

Service layer for call-record CSV ingestion.

The service is a best-effort batch import: every line is parsed on its own,
a bad line becomes one entry in the upload result's error list, and all
valid lines are handed to the store in batches. Only file-level problems
(too large, not UTF-8) abort the whole call, and they are detected before
any row is parsed or stored.
"""

from __future__ import annotations

import codecs
import io
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from functools import lru_cache
from typing import BinaryIO

from fastapi import UploadFile

from app.config import get_csv_ingestion_settings
from app.domain.call_record import CallRecordInput, UploadResult
from app.services.call_record_store import CallRecordStore
from app.validators.csv_validator import CallRecordRowParser, RowParseError, looks_like_header

logger = logging.getLogger(__name__)

_DECODE_CHUNK_BYTES = 1024 * 1024


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FileTooLargeError(ValueError):
    """
    Raised when an upload exceeds the configured size limit.
    """

    def __init__(self, *, size_bytes: int, max_bytes: int) -> None:
        super().__init__(
            f"File is {size_bytes} bytes; the maximum accepted size is {max_bytes} bytes."
        )
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes


class CSVDecodeError(ValueError):
    """
    Raised when the upload cannot be read as UTF-8 text.
    """


# ---------------------------------------------------------------------------
# Error collection
# ---------------------------------------------------------------------------


class _ErrorCollector:
    """
    Ordered row errors, optionally capped. ``omitted`` counts what the cap dropped.
    """

    def __init__(self, max_errors: int) -> None:
        self._max_errors = max_errors
        self.entries: list[str] = []
        self.omitted = 0

    def add(self, entry: str) -> None:
        if self._max_errors and len(self.entries) >= self._max_errors:
            self.omitted += 1
            return
        self.entries.append(entry)

    def finish(self) -> list[str]:
        if self.omitted:
            return self.entries + [f"... {self.omitted} more row error(s) not listed."]
        return list(self.entries)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CallRecordIngestionService:
    """
    Coordinates size checks, row parsing, and batched persistence.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        max_file_bytes: int,
        log_validation_errors: bool,
        max_validation_errors: int = 0,
        parser: CallRecordRowParser | None = None,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._max_file_bytes = max(1, max_file_bytes)
        self._log_validation_errors = log_validation_errors
        self._max_validation_errors = max(0, max_validation_errors)
        self._parser = parser or CallRecordRowParser()

    @property
    def max_file_bytes(self) -> int:
        return self._max_file_bytes

    def ingest_csv(self, *, upload_file: UploadFile, store: CallRecordStore) -> UploadResult:
        """
        Stream an uploaded CSV file into *store*.

        Raises
        ------
        FileTooLargeError
            Before reading any row, when the file exceeds ``max_file_bytes``.
        CSVDecodeError
            Before reading any row, when the file is not UTF-8 text.
        """
        raw_file = upload_file.file
        size = upload_file.size if upload_file.size is not None else _measure(raw_file)
        self._ensure_within_limit(size)
        _ensure_utf8(raw_file)

        text_stream = io.TextIOWrapper(raw_file, encoding="utf-8-sig", newline="")
        try:
            return self.ingest_lines(text_stream, store=store)
        finally:
            try:
                text_stream.detach()
            except ValueError:
                pass

    def ingest_text(self, content: str | bytes, *, store: CallRecordStore) -> UploadResult:
        """
        Ingest an in-memory CSV document.
        """
        if isinstance(content, bytes):
            self._ensure_within_limit(len(content))
            try:
                text = content.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                raise CSVDecodeError("CSV must be UTF-8 encoded.") from exc
        else:
            self._ensure_within_limit(len(content.encode("utf-8")))
            text = content.removeprefix("\ufeff")
        return self.ingest_lines(text.splitlines(), store=store)

    def ingest_lines(self, lines: Iterable[str], *, store: CallRecordStore) -> UploadResult:
        """
        Parse every line independently and persist the valid ones.

        A first line whose first two columns hold no digits is a header and
        is neither parsed nor counted. Any other first line is data.
        """
        total = 0
        successful = 0
        failed = 0
        errors = _ErrorCollector(self._max_validation_errors)
        batch: list[CallRecordInput] = []

        for row_number, line in enumerate(lines, start=1):
            if row_number == 1 and looks_like_header(line):
                logger.debug("Skipping header row: %r", line.rstrip("\r\n"))
                continue

            total += 1
            try:
                record = self._parser.parse_line(line, row_number)
            except RowParseError as exc:
                failed += 1
                self._record_error(errors, exc)
                continue

            batch.append(record)
            if len(batch) >= self._batch_size:
                stored = store.import_records(batch)
                successful += stored.successful_records
                failed += stored.failed_records
                for entry in stored.errors:
                    errors.add(entry)
                batch = []

        if batch:
            stored = store.import_records(batch)
            successful += stored.successful_records
            failed += stored.failed_records
            for entry in stored.errors:
                errors.add(entry)

        result = UploadResult(
            total_records=total,
            successful_records=successful,
            failed_records=failed,
            errors=errors.finish(),
            uploaded_at=datetime.now(timezone.utc),
        )
        logger.info(
            "CSV ingestion finished total=%d successful=%d failed=%d errors_omitted=%d",
            result.total_records,
            result.successful_records,
            result.failed_records,
            errors.omitted,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_within_limit(self, size_bytes: int) -> None:
        if size_bytes > self._max_file_bytes:
            logger.warning(
                "Rejected CSV upload size=%d max=%d", size_bytes, self._max_file_bytes
            )
            raise FileTooLargeError(size_bytes=size_bytes, max_bytes=self._max_file_bytes)

    def _record_error(self, errors: _ErrorCollector, error: RowParseError) -> None:
        if self._log_validation_errors:
            logger.warning(
                "CSV row rejected row=%s kind=%s message=%s",
                error.row_number,
                error.kind.value,
                error.message,
            )
        errors.add(error.describe())


def _measure(raw_file: BinaryIO) -> int:
    raw_file.seek(0, io.SEEK_END)
    size = raw_file.tell()
    raw_file.seek(0)
    return size


def _ensure_utf8(raw_file: BinaryIO) -> None:
    """
    Decode the whole file once without keeping the text; rewinds afterwards.
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    raw_file.seek(0)
    try:
        while True:
            chunk = raw_file.read(_DECODE_CHUNK_BYTES)
            if not chunk:
                break
            decoder.decode(chunk)
        decoder.decode(b"", final=True)
    except UnicodeDecodeError as exc:
        logger.warning("Rejected CSV upload: not UTF-8 (%s)", exc.reason)
        raise CSVDecodeError("CSV must be UTF-8 encoded.") from exc
    finally:
        raw_file.seek(0)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_ingestion_service() -> CallRecordIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """
    settings = get_csv_ingestion_settings()
    return CallRecordIngestionService(
        batch_size=settings.batch_size,
        max_file_bytes=settings.max_file_bytes,
        log_validation_errors=settings.log_validation_errors,
        max_validation_errors=settings.max_validation_errors,
    )

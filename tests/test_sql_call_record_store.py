"""
tests/test_sql_call_record_store.py

Unit tests for SQLCallRecordStore with the repository replaced by a mock,
so transaction handling and summary assembly are checked without a database.
"""

from __future__ import annotations

from datetime import date
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from app.services.call_record_store import CallRecordPersistenceError, SQLCallRecordStore
from app.services.export_service import ExportTooLargeError
from conftest import make_record

DAY = date(2024, 1, 15)


@pytest.fixture()
def session() -> mock.MagicMock:
    return mock.MagicMock()


@pytest.fixture()
def sql_store(session: mock.MagicMock) -> SQLCallRecordStore:
    store = SQLCallRecordStore(session, batch_size=2)
    store._repository = mock.MagicMock()
    return store


class TestImportRecords:
    def test_commits_and_reports_inserted_rows(self, sql_store, session) -> None:
        sql_store._repository.bulk_insert.return_value = 3
        records = [make_record(DAY, 8), make_record(DAY, 9), make_record(DAY, 10)]

        result = sql_store.import_records(records)

        sql_store._repository.bulk_insert.assert_called_once_with(records, batch_size=2)
        session.commit.assert_called_once()
        assert result.successful_records == 3
        assert result.failed_records == 0

    def test_empty_batch_skips_database(self, sql_store, session) -> None:
        result = sql_store.import_records([])

        assert result.total_records == 0
        sql_store._repository.bulk_insert.assert_not_called()
        session.commit.assert_not_called()

    def test_database_error_rolls_back(self, sql_store, session) -> None:
        sql_store._repository.bulk_insert.side_effect = OperationalError("INSERT", {}, Exception("down"))

        with pytest.raises(CallRecordPersistenceError):
            sql_store.import_records([make_record(DAY, 8)])

        session.rollback.assert_called_once()
        session.commit.assert_not_called()


class TestSummaries:
    def test_daily_summary_from_grouped_counts(self, sql_store) -> None:
        sql_store._repository.count_by_hour_and_reason.return_value = [(9, 2, 2), (8, 1, 1)]

        summary = sql_store.get_daily_summary(DAY)

        assert summary is not None
        assert summary.total_qty == 3
        assert summary.hourly_data[9].sys_busy_percent == 100.0

    def test_daily_summary_without_rows_is_none(self, sql_store) -> None:
        sql_store._repository.count_by_hour_and_reason.return_value = []

        assert sql_store.get_daily_summary(DAY) is None

    def test_overall_summary_groups_by_date(self, sql_store) -> None:
        other = date(2024, 1, 16)
        sql_store._repository.count_by_date_hour_and_reason.return_value = [
            (other, 14, 3, 1),
            (DAY, 9, 2, 2),
            (DAY, 8, 1, 1),
        ]

        overall = sql_store.get_overall_summary(DAY, other)

        assert [day.call_date for day in overall.days] == [DAY, other]
        assert overall.total_qty == 4


class TestExportAndDelete:
    def test_export_range(self, sql_store) -> None:
        sql_store._repository.iter_range.return_value = iter([make_record(DAY, 8)])

        result = sql_store.export_range(DAY, DAY)

        assert result.filename == "CallRecords_2024-01-15.csv"
        assert len(result.rows) == 1

    def test_export_inverted_range_raises(self, sql_store) -> None:
        with pytest.raises(ValueError):
            sql_store.export_range(date(2024, 1, 16), DAY)

    def test_export_row_limit(self, session) -> None:
        store = SQLCallRecordStore(session, export_max_rows=1)
        store._repository = mock.MagicMock()
        store._repository.iter_range.return_value = iter(
            [make_record(DAY, 8), make_record(DAY, 9)]
        )

        with pytest.raises(ExportTooLargeError):
            store.export_range(DAY, DAY)

    def test_delete_commits(self, sql_store, session) -> None:
        sql_store._repository.delete_for_date.return_value = 5

        assert sql_store.delete_for_date(DAY) == 5
        session.commit.assert_called_once()

    def test_delete_error_rolls_back(self, sql_store, session) -> None:
        sql_store._repository.delete_for_date.side_effect = OperationalError("DELETE", {}, Exception("down"))

        with pytest.raises(CallRecordPersistenceError):
            sql_store.delete_for_date(DAY)

        session.rollback.assert_called_once()

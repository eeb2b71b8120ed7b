"""
tests/test_aggregation.py

Pytest unit tests for the hourly bucketer, the daily aggregator and the
range aggregator.

All tests are pure Python: no database, no I/O.

Coverage
--------
- 24 contiguous zero-filled hours
- Per-hour category sums and percentage rounding
- Unknown codes counted as others
- Daily totals equal hourly sums; ratio-of-totals averages
- Contract violations raise InvariantViolation
- Range totals, ordering and hour-of-day profile
"""

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from aggregation.base import InvariantViolation, hour_range_label, percent
from aggregation.daily import build_daily_summary
from aggregation.hourly import (
    build_hourly_summaries,
    build_hourly_summaries_from_counts,
    tallies_from_counts,
)
from aggregation.overall import build_overall_summary
from conftest import make_record

DAY = date(2024, 1, 15)
NEXT_DAY = date(2024, 1, 16)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_percent_rounds_to_one_decimal(self) -> None:
        assert percent(1, 3) == 33.3
        assert percent(2, 3) == 66.7

    def test_percent_of_zero_is_zero(self) -> None:
        assert percent(0, 0) == 0.0

    def test_hour_range_label(self) -> None:
        assert hour_range_label(0) == "00:00 - 00:59"
        assert hour_range_label(13) == "13:00 - 13:59"


# ---------------------------------------------------------------------------
# Hourly bucketer
# ---------------------------------------------------------------------------


class TestHourlyBucketer:
    def test_empty_input_yields_24_zero_hours(self) -> None:
        hourly = build_hourly_summaries(DAY, [])

        assert [entry.hour_group for entry in hourly] == list(range(24))
        assert all(entry.qty == 0 for entry in hourly)
        assert all(entry.te_busy_percent == 0.0 for entry in hourly)
        assert all(entry.call_date == DAY for entry in hourly)

    def test_two_system_busy_records_at_nine(self) -> None:
        records = [make_record(DAY, 9, 5, reason=2), make_record(DAY, 9, 45, reason=2)]

        hour = build_hourly_summaries(DAY, records)[9]

        assert hour.qty == 2
        assert hour.sys_busy == 2
        assert hour.sys_busy_percent == 100.0
        assert hour.te_busy == 0
        assert hour.time_range == "09:00 - 09:59"

    def test_category_sum_equals_qty_and_percents_bounded(self) -> None:
        records = [
            make_record(DAY, 8, reason=1),
            make_record(DAY, 8, reason=2),
            make_record(DAY, 8, reason=3),
            make_record(DAY, 8, reason=9),
            make_record(DAY, 17, reason=1),
        ]

        for entry in build_hourly_summaries(DAY, records):
            assert entry.te_busy + entry.sys_busy + entry.others == entry.qty
            for value in (entry.te_busy_percent, entry.sys_busy_percent, entry.others_percent):
                assert 0.0 <= value <= 100.0

    def test_unknown_code_counts_as_others(self) -> None:
        hour = build_hourly_summaries(DAY, [make_record(DAY, 3, reason=42)])[3]

        assert hour.others == 1
        assert hour.others_percent == 100.0

    def test_groups_by_stored_hour_group(self) -> None:
        record = dataclasses.replace(make_record(DAY, 10), hour_group=11)

        hourly = build_hourly_summaries(DAY, [record])

        assert hourly[10].qty == 0
        assert hourly[11].qty == 1

    def test_foreign_date_raises(self) -> None:
        with pytest.raises(InvariantViolation):
            build_hourly_summaries(DAY, [make_record(NEXT_DAY, 1)])

    def test_out_of_range_hour_raises(self) -> None:
        record = dataclasses.replace(make_record(DAY, 10), hour_group=24)
        with pytest.raises(InvariantViolation):
            build_hourly_summaries(DAY, [record])

    def test_counts_match_records(self) -> None:
        records = [make_record(DAY, 9, reason=2), make_record(DAY, 9, reason=2), make_record(DAY, 20, reason=1)]

        from_records = build_hourly_summaries(DAY, records)
        from_counts = build_hourly_summaries_from_counts(DAY, [(9, 2, 2), (20, 1, 1)])

        assert from_records == from_counts

    def test_negative_count_raises(self) -> None:
        with pytest.raises(InvariantViolation):
            tallies_from_counts([(5, 1, -1)])


# ---------------------------------------------------------------------------
# Daily aggregator
# ---------------------------------------------------------------------------


class TestDailyAggregator:
    def test_two_system_busy_records_at_nine(self) -> None:
        records = [make_record(DAY, 9, reason=2), make_record(DAY, 9, 30, reason=2)]

        daily = build_daily_summary(DAY, build_hourly_summaries(DAY, records))

        assert daily.total_qty == 2
        assert daily.total_sys_busy == 2
        assert daily.avg_sys_busy_percent == 100.0
        assert daily.avg_te_busy_percent == 0.0
        assert len(daily.hourly_data) == 24

    def test_totals_equal_hourly_sums(self) -> None:
        records = [
            make_record(DAY, 0, reason=1),
            make_record(DAY, 0, reason=3),
            make_record(DAY, 12, reason=2),
            make_record(DAY, 23, reason=1),
        ]
        hourly = build_hourly_summaries(DAY, records)

        daily = build_daily_summary(DAY, hourly)

        assert daily.total_qty == sum(entry.qty for entry in hourly) == 4
        assert daily.total_te_busy == sum(entry.te_busy for entry in hourly) == 2
        assert daily.total_sys_busy == 1
        assert daily.total_others == 1

    def test_averages_are_ratio_of_totals(self) -> None:
        records = [make_record(DAY, 1, reason=1)] + [make_record(DAY, 2, reason=2)] * 3

        daily = build_daily_summary(DAY, build_hourly_summaries(DAY, records))

        # Mean of the hourly percents would give 50.0.
        assert daily.avg_te_busy_percent == 25.0
        assert daily.avg_sys_busy_percent == 75.0

    def test_empty_day_has_zero_averages(self) -> None:
        daily = build_daily_summary(DAY, build_hourly_summaries(DAY, []))

        assert daily.total_qty == 0
        assert daily.avg_others_percent == 0.0

    def test_wrong_entry_count_raises(self) -> None:
        hourly = build_hourly_summaries(DAY, [])
        with pytest.raises(InvariantViolation):
            build_daily_summary(DAY, hourly[:23])

    def test_out_of_order_hours_raise(self) -> None:
        hourly = build_hourly_summaries(DAY, [])
        hourly[0], hourly[1] = hourly[1], hourly[0]
        with pytest.raises(InvariantViolation):
            build_daily_summary(DAY, hourly)

    def test_foreign_date_raises(self) -> None:
        with pytest.raises(InvariantViolation):
            build_daily_summary(NEXT_DAY, build_hourly_summaries(DAY, []))

    def test_inconsistent_counts_raise(self) -> None:
        hourly = build_hourly_summaries(DAY, [make_record(DAY, 4)])
        hourly[4] = dataclasses.replace(hourly[4], qty=5)
        with pytest.raises(InvariantViolation):
            build_daily_summary(DAY, hourly)


# ---------------------------------------------------------------------------
# Range aggregator
# ---------------------------------------------------------------------------


def _daily(call_date: date, records):
    return build_daily_summary(call_date, build_hourly_summaries(call_date, records))


class TestOverallSummary:
    def test_combines_days_in_order(self) -> None:
        second = _daily(NEXT_DAY, [make_record(NEXT_DAY, 9, reason=2)])
        first = _daily(DAY, [make_record(DAY, 9, reason=1), make_record(DAY, 10, reason=3)])

        overall = build_overall_summary(DAY, NEXT_DAY, [second, first])

        assert [day.call_date for day in overall.days] == [DAY, NEXT_DAY]
        assert overall.total_qty == 3
        assert overall.total_te_busy == 1
        assert overall.total_sys_busy == 1
        assert overall.total_others == 1
        assert overall.te_busy_percent == 33.3
        assert len(overall.hourly_profile) == 24
        assert overall.hourly_profile[9].qty == 2
        assert overall.hourly_profile[10].others == 1

    def test_empty_range(self) -> None:
        overall = build_overall_summary(DAY, NEXT_DAY, [])

        assert overall.days == ()
        assert overall.total_qty == 0
        assert overall.others_percent == 0.0

    def test_inverted_range_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            build_overall_summary(NEXT_DAY, DAY, [])

    def test_day_outside_range_raises(self) -> None:
        with pytest.raises(InvariantViolation):
            build_overall_summary(DAY, DAY, [_daily(NEXT_DAY, [])])

    def test_duplicate_day_raises(self) -> None:
        day = _daily(DAY, [])
        with pytest.raises(InvariantViolation):
            build_overall_summary(DAY, NEXT_DAY, [day, day])

"""
aggregation/overall.py

Range aggregator: DailySummary entries of several dates → one OverallSummary.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from aggregation.base import (
    HOURS_PER_DAY,
    DailySummary,
    InvariantViolation,
    OverallSummary,
    ReasonTally,
    percent,
)


def build_overall_summary(
    start_date: date,
    end_date: date,
    daily_summaries: Iterable[DailySummary],
) -> OverallSummary:
    """
    Combine daily summaries of ``[start_date, end_date]`` (inclusive).

    Days are returned in date order. Percentages are ratios of the range
    totals, matching the daily policy.
    """
    if start_date > end_date:
        raise ValueError("start_date must not be later than end_date.")

    by_date: dict[date, DailySummary] = {}
    for summary in daily_summaries:
        if not start_date <= summary.call_date <= end_date:
            raise InvariantViolation(
                f"Daily summary for {summary.call_date.isoformat()} is outside "
                f"{start_date.isoformat()}..{end_date.isoformat()}."
            )
        if summary.call_date in by_date:
            raise InvariantViolation(
                f"Duplicate daily summary for {summary.call_date.isoformat()}."
            )
        by_date[summary.call_date] = summary

    days = tuple(by_date[key] for key in sorted(by_date))

    te_busy = [0] * HOURS_PER_DAY
    sys_busy = [0] * HOURS_PER_DAY
    others = [0] * HOURS_PER_DAY
    for day in days:
        for entry in day.hourly_data:
            te_busy[entry.hour_group] += entry.te_busy
            sys_busy[entry.hour_group] += entry.sys_busy
            others[entry.hour_group] += entry.others

    hourly_profile = tuple(
        ReasonTally(te_busy=te_busy[hour], sys_busy=sys_busy[hour], others=others[hour])
        for hour in range(HOURS_PER_DAY)
    )

    total_qty = sum(day.total_qty for day in days)
    total_te_busy = sum(day.total_te_busy for day in days)
    total_sys_busy = sum(day.total_sys_busy for day in days)
    total_others = sum(day.total_others for day in days)

    return OverallSummary(
        start_date=start_date,
        end_date=end_date,
        days=days,
        hourly_profile=hourly_profile,
        total_qty=total_qty,
        total_te_busy=total_te_busy,
        total_sys_busy=total_sys_busy,
        total_others=total_others,
        te_busy_percent=percent(total_te_busy, total_qty),
        sys_busy_percent=percent(total_sys_busy, total_qty),
        others_percent=percent(total_others, total_qty),
    )

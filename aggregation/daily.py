"""
aggregation/daily.py

Daily aggregator: 24 HourlySummary entries → one DailySummary.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from aggregation.base import (
    HOURS_PER_DAY,
    DailySummary,
    HourlySummary,
    InvariantViolation,
    percent,
)

logger = logging.getLogger(__name__)


def _check_hourly_contract(call_date: date, hourly: Sequence[HourlySummary]) -> None:
    if len(hourly) != HOURS_PER_DAY:
        raise InvariantViolation(
            f"Expected {HOURS_PER_DAY} hourly entries for {call_date.isoformat()}, "
            f"got {len(hourly)}."
        )

    for expected_hour, entry in enumerate(hourly):
        if entry.hour_group != expected_hour:
            raise InvariantViolation(
                f"Hourly entry at position {expected_hour} has hour group "
                f"{entry.hour_group}; entries must cover 0..23 once, in order."
            )
        if entry.call_date != call_date:
            raise InvariantViolation(
                f"Hourly entry for {entry.call_date.isoformat()} passed to the "
                f"daily aggregator for {call_date.isoformat()}."
            )
        if entry.te_busy + entry.sys_busy + entry.others != entry.qty:
            raise InvariantViolation(
                f"Hour {entry.hour_group}: category counts "
                f"({entry.te_busy} + {entry.sys_busy} + {entry.others}) "
                f"do not add up to qty {entry.qty}."
            )


def build_daily_summary(call_date: date, hourly: Sequence[HourlySummary]) -> DailySummary:
    """
    Total the 24 hourly buckets of *call_date*.

    Average percentages are computed from the totals
    (``total_category / total_qty * 100``) so quiet hours do not drag the
    figure towards zero.

    Raises
    ------
    InvariantViolation
        When *hourly* is not exactly hours 0..23 of *call_date* in order,
        or an entry's category counts do not sum to its qty.
    """
    _check_hourly_contract(call_date, hourly)

    total_qty = sum(entry.qty for entry in hourly)
    total_te_busy = sum(entry.te_busy for entry in hourly)
    total_sys_busy = sum(entry.sys_busy for entry in hourly)
    total_others = sum(entry.others for entry in hourly)

    summary = DailySummary(
        call_date=call_date,
        hourly_data=tuple(hourly),
        total_qty=total_qty,
        total_te_busy=total_te_busy,
        total_sys_busy=total_sys_busy,
        total_others=total_others,
        avg_te_busy_percent=percent(total_te_busy, total_qty),
        avg_sys_busy_percent=percent(total_sys_busy, total_qty),
        avg_others_percent=percent(total_others, total_qty),
    )
    logger.debug(
        "build_daily_summary date=%s total_qty=%d te_busy=%d sys_busy=%d others=%d",
        call_date.isoformat(), total_qty, total_te_busy, total_sys_busy, total_others,
    )
    return summary

"""
aggregation/hourly.py

Hourly bucketer: call records for one date → 24 HourlySummary entries.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import date

from aggregation.base import (
    HOURS_PER_DAY,
    HourlySummary,
    InvariantViolation,
    ReasonTally,
    ensure_hour,
    hour_range_label,
    percent,
)
from app.domain.call_record import CallRecordInput, CloseReason, CloseReasonCategory

logger = logging.getLogger(__name__)


def summarize_hour(call_date: date, hour_group: int, tally: ReasonTally) -> HourlySummary:
    qty = tally.qty
    return HourlySummary(
        call_date=call_date,
        hour_group=hour_group,
        time_range=hour_range_label(hour_group),
        qty=qty,
        te_busy=tally.te_busy,
        te_busy_percent=percent(tally.te_busy, qty),
        sys_busy=tally.sys_busy,
        sys_busy_percent=percent(tally.sys_busy, qty),
        others=tally.others,
        others_percent=percent(tally.others, qty),
    )


def tallies_from_counts(counts: Iterable[tuple[int, int, int]]) -> dict[int, ReasonTally]:
    """
    Fold ``(hour_group, close_reason_code, count)`` rows into one tally per hour.

    Unknown close-reason codes are counted as ``others``.
    """
    counter: Counter[tuple[int, CloseReasonCategory]] = Counter()
    for hour_group, code, count in counts:
        ensure_hour(hour_group)
        if count < 0:
            raise InvariantViolation(f"Negative count {count} for hour {hour_group}.")
        counter[(hour_group, CloseReason(code).bucket)] += count

    return {
        hour: ReasonTally(
            te_busy=counter[(hour, CloseReasonCategory.TE_BUSY)],
            sys_busy=counter[(hour, CloseReasonCategory.SYSTEM_BUSY)],
            others=counter[(hour, CloseReasonCategory.OTHERS)],
        )
        for hour in {hour for hour, _ in counter}
    }


def summarize_tallies(
    call_date: date,
    tallies: Mapping[int, ReasonTally],
) -> list[HourlySummary]:
    """
    Expand per-hour tallies into the full 0..23 sequence, zero-filling gaps.
    """
    for hour in tallies:
        ensure_hour(hour)
    empty = ReasonTally()
    return [
        summarize_hour(call_date, hour, tallies.get(hour, empty))
        for hour in range(HOURS_PER_DAY)
    ]


def build_hourly_summaries(
    call_date: date,
    records: Iterable[CallRecordInput],
) -> list[HourlySummary]:
    """
    Group *records* by their ``hour_group`` and summarize every hour of *call_date*.

    Always returns 24 entries in ascending hour order. Records dated on any
    other day raise :class:`InvariantViolation`.
    """
    counts: Counter[tuple[int, int]] = Counter()
    seen = 0
    for record in records:
        if record.call_date != call_date:
            raise InvariantViolation(
                f"Record dated {record.call_date.isoformat()} passed to the "
                f"bucketer for {call_date.isoformat()}."
            )
        counts[(record.hour_group, record.call_close_reason)] += 1
        seen += 1

    tallies = tallies_from_counts(
        (hour, code, count) for (hour, code), count in counts.items()
    )
    logger.debug(
        "build_hourly_summaries date=%s records=%d active_hours=%d",
        call_date.isoformat(), seen, len(tallies),
    )
    return summarize_tallies(call_date, tallies)


def build_hourly_summaries_from_counts(
    call_date: date,
    counts: Iterable[tuple[int, int, int]],
) -> list[HourlySummary]:
    """
    Same output as :func:`build_hourly_summaries`, from pre-aggregated
    ``(hour_group, close_reason_code, count)`` rows.
    """
    return summarize_tallies(call_date, tallies_from_counts(counts))

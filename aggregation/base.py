"""
aggregation/base.py

Value objects and shared helpers for the hourly/daily aggregation pipeline.

Nothing in this package performs I/O. Every function is a pure
transformation of its arguments, so the same inputs always produce the
same summaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Final

HOURS_PER_DAY: Final[int] = 24
PERCENT_DECIMALS: Final[int] = 1


class InvariantViolation(RuntimeError):
    """
    Raised when the aggregation pipeline receives input that breaks its
    contract (wrong hour count, foreign date, counts that do not add up).

    This signals a bug in the caller, not bad user data.
    """


def percent(part: int, whole: int) -> float:
    """
    Return ``100 * part / whole`` rounded to one decimal, or ``0.0`` when
    *whole* is zero.
    """
    if whole <= 0:
        return 0.0
    return round(100.0 * part / whole, PERCENT_DECIMALS)


def hour_range_label(hour_group: int) -> str:
    """Display label for one hour bucket, e.g. ``"08:00 - 08:59"``."""
    return f"{hour_group:02d}:00 - {hour_group:02d}:59"


def ensure_hour(hour_group: int) -> int:
    if not 0 <= hour_group < HOURS_PER_DAY:
        raise InvariantViolation(f"Hour group {hour_group} is outside 0..23.")
    return hour_group


@dataclass(frozen=True)
class ReasonTally:
    """
    Counts per close-reason bucket for one hour.
    """

    te_busy: int = 0
    sys_busy: int = 0
    others: int = 0

    @property
    def qty(self) -> int:
        return self.te_busy + self.sys_busy + self.others


@dataclass(frozen=True)
class HourlySummary:
    call_date: date
    hour_group: int
    time_range: str
    qty: int
    te_busy: int
    te_busy_percent: float
    sys_busy: int
    sys_busy_percent: float
    others: int
    others_percent: float


@dataclass(frozen=True)
class DailySummary:
    """
    Whole-day statistics built from the 24 hourly buckets of one date.

    Average percentages are ratios of the daily totals, not means of the
    hourly percentages.
    """

    call_date: date
    hourly_data: tuple[HourlySummary, ...]
    total_qty: int
    total_te_busy: int
    total_sys_busy: int
    total_others: int
    avg_te_busy_percent: float
    avg_sys_busy_percent: float
    avg_others_percent: float


@dataclass(frozen=True)
class OverallSummary:
    """
    Statistics across an inclusive date range.

    ``days`` only holds dates that have data; ``hourly_profile`` sums every
    day's buckets per hour of day and always has 24 entries.
    """

    start_date: date
    end_date: date
    days: tuple[DailySummary, ...]
    hourly_profile: tuple[ReasonTally, ...]
    total_qty: int
    total_te_busy: int
    total_sys_busy: int
    total_others: int
    te_busy_percent: float
    sys_busy_percent: float
    others_percent: float

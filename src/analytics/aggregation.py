"""Temporal aggregation of footfall records.

Buckets records by hour-of-day and by calendar day and derives the
headline KPIs (total, average, peak/lowest hour, peak day).
"""

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from src.analytics.records import FootfallRecord, chronological_key

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def hour_label(hour: int) -> str:
    """Format an hour-of-day as ``'H:00'``."""
    return f"{hour}:00"


def time_slot(hour: int) -> str:
    """Format an hour-of-day as a one-hour slot, e.g. ``'17:00 - 18:00'``."""
    return f"{hour}:00 - {hour + 1}:00"


@dataclass(frozen=True)
class HourlyBucket:
    """Footfall values observed at one hour-of-day across all days.

    Attributes:
        hour: Hour of day, 0-23.
        values: Footfall values in record order.
    """

    hour: int
    values: tuple[int, ...] = ()

    @property
    def count(self) -> int:
        return len(self.values)

    @property
    def total(self) -> int:
        return sum(self.values)

    @property
    def average(self) -> float:
        """Mean footfall for this hour, or 0.0 when nothing was observed."""
        if not self.values:
            return 0.0
        return self.total / len(self.values)


@dataclass(frozen=True)
class SummaryKPIs:
    """Headline statistics for a non-empty record set."""

    total: int
    average: int
    peak_hour: int
    lowest_hour: int
    peak_day: str
    record_count: int
    period_start: datetime
    period_end: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "average": self.average,
            "peak_hour": self.peak_hour,
            "peak_hour_label": hour_label(self.peak_hour),
            "lowest_hour": self.lowest_hour,
            "lowest_hour_label": hour_label(self.lowest_hour),
            "peak_day": self.peak_day,
            "record_count": self.record_count,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
        }


def hourly_buckets(records: Sequence[FootfallRecord]) -> list[HourlyBucket]:
    """Group footfall values by hour-of-day.

    Args:
        records: Footfall records in any order.

    Returns:
        Exactly 24 buckets indexed by hour; hours without observations
        have an empty ``values`` tuple.
    """
    grouped: dict[int, list[int]] = defaultdict(list)
    for record in records:
        grouped[record.timestamp.hour].append(record.footfall)
    return [
        HourlyBucket(hour=hour, values=tuple(grouped.get(hour, ())))
        for hour in range(HOURS_PER_DAY)
    ]


def hourly_averages(records: Sequence[FootfallRecord]) -> list[float]:
    """Return the 24 hourly average footfall values (0.0 for empty hours)."""
    return [bucket.average for bucket in hourly_buckets(records)]


def daily_totals(records: Sequence[FootfallRecord]) -> dict[str, int]:
    """Sum footfall per calendar date.

    Keys are ``YYYY-MM-DD`` strings in first-seen order, which is not
    necessarily chronological.
    """
    totals: dict[str, int] = {}
    for record in records:
        day = record.timestamp.date().isoformat()
        totals[day] = totals.get(day, 0) + record.footfall
    return totals


def _argmax(pairs: Sequence[tuple[Any, float]]) -> Any:
    best_key, best_value = pairs[0]
    for key, value in pairs[1:]:
        if value > best_value:
            best_key, best_value = key, value
    return best_key


def _argmin(pairs: Sequence[tuple[Any, float]]) -> Any:
    best_key, best_value = pairs[0]
    for key, value in pairs[1:]:
        if value < best_value:
            best_key, best_value = key, value
    return best_key


def summary_kpis(records: Sequence[FootfallRecord]) -> Optional[SummaryKPIs]:
    """Compute headline KPIs for a record set.

    Peak and lowest hour only consider hours with at least one
    observation. Ties go to the earliest hour (or first-seen day).

    Args:
        records: Footfall records in any order.

    Returns:
        SummaryKPIs, or None when ``records`` is empty.
    """
    if not records:
        return None

    total = sum(r.footfall for r in records)
    observed = [(b.hour, b.average) for b in hourly_buckets(records) if b.count]
    days = list(daily_totals(records).items())
    ordered = sorted(records, key=lambda r: chronological_key(r.timestamp))

    kpis = SummaryKPIs(
        total=total,
        average=round_half_up(total / len(records)),
        peak_hour=_argmax(observed),
        lowest_hour=_argmin(observed),
        peak_day=_argmax(days),
        record_count=len(records),
        period_start=ordered[0].timestamp,
        period_end=ordered[-1].timestamp,
    )
    logger.debug("Summary KPIs: %s", kpis)
    return kpis

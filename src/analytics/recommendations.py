"""Staffing, marketing and location recommendations.

Ranks hours by average footfall to find peak and low periods, sizes
staffing for the peaks and pairs promotional offers with the lows.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import numpy as np

from src.analytics.aggregation import HourlyBucket, round_half_up, time_slot
from src.analytics.geo import LocationBin, top_bins

logger = logging.getLogger(__name__)

CUSTOMERS_PER_STAFF = 15
TOP_N = 3


@dataclass(frozen=True)
class Offer:
    """A promotional offer from the catalog."""

    discount_percent: int
    description: str


DEFAULT_OFFERS: tuple[Offer, ...] = (
    Offer(20, "Flash sale to boost foot traffic"),
    Offer(15, "Happy hour special"),
    Offer(25, "Limited time offer"),
)


@dataclass(frozen=True)
class StaffingRecommendation:
    hour: int
    time_slot: str
    average_footfall: float
    staff_count: int
    reason: str = "Peak traffic period"


@dataclass(frozen=True)
class MarketingRecommendation:
    hour: int
    time_slot: str
    discount_percent: int
    description: str


@dataclass(frozen=True)
class LocationRecommendation:
    area: str
    suggestion: str
    impact: str


@dataclass
class Recommendations:
    """All recommendations derived from one record set.

    Attributes:
        peak_hours: Busiest observed hours, busiest first.
        low_hours: Quietest observed hours, quietest first.
        staffing: One entry per peak hour.
        marketing: One entry per low hour.
        location: Location suggestions; empty without location data.
        avg_footfall: Rounded mean of the observed hourly averages.
    """

    peak_hours: list[int]
    low_hours: list[int]
    staffing: list[StaffingRecommendation]
    marketing: list[MarketingRecommendation]
    location: list[LocationRecommendation] = field(default_factory=list)
    avg_footfall: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "peak_hours": list(self.peak_hours),
            "low_hours": list(self.low_hours),
            "staffing": [asdict(s) for s in self.staffing],
            "marketing": [asdict(m) for m in self.marketing],
            "location": [asdict(loc) for loc in self.location],
            "avg_footfall": self.avg_footfall,
        }


def staff_needed(
    average_footfall: float, customers_per_staff: int = CUSTOMERS_PER_STAFF
) -> int:
    """Staff members needed to cover an hour's average footfall."""
    return math.ceil(average_footfall / customers_per_staff)


def rank_hours(
    buckets: Sequence[HourlyBucket], n: int = TOP_N
) -> tuple[list[int], list[int]]:
    """Return ``(peak_hours, low_hours)`` among hours with observations.

    Sorting is stable, so equal averages keep ascending hour order.
    """
    observed = [b for b in buckets if b.count]
    by_peak = sorted(observed, key=lambda b: b.average, reverse=True)
    by_low = sorted(observed, key=lambda b: b.average)
    return [b.hour for b in by_peak[:n]], [b.hour for b in by_low[:n]]


def location_recommendations(
    bins: Optional[Sequence[LocationBin]] = None,
) -> list[LocationRecommendation]:
    """Location suggestions for uploads carrying coordinates.

    The suggestions are fixed templates. When ``bins`` are given, the
    high-density entry names the busiest cell's coordinates.
    """
    area = "High density zone detected"
    if bins:
        densest = top_bins(bins, 1)[0]
        area = f"High density zone detected near {densest.lat:.4f}, {densest.lng:.4f}"
    return [
        LocationRecommendation(
            area=area,
            suggestion="Consider placing outdoor signage or banners in this area",
            impact="High",
        ),
        LocationRecommendation(
            area="Customer cluster 250m north",
            suggestion="Deploy promotional materials or street team",
            impact="Medium",
        ),
        LocationRecommendation(
            area="Low visibility area identified",
            suggestion="Install directional signage to improve discoverability",
            impact="Medium",
        ),
    ]


def recommend(
    buckets: Sequence[HourlyBucket],
    has_location_data: bool,
    rng: Optional[np.random.Generator] = None,
    bins: Optional[Sequence[LocationBin]] = None,
    offers: Sequence[Offer] = DEFAULT_OFFERS,
    customers_per_staff: int = CUSTOMERS_PER_STAFF,
    top_n: int = TOP_N,
) -> Optional[Recommendations]:
    """Derive staffing, marketing and location recommendations.

    Args:
        buckets: The 24 hourly buckets from ``hourly_buckets``.
        has_location_data: Whether the upload carried coordinate columns.
        rng: Picks one offer per low hour via ``integers(n)``. Defaults to
            an unseeded generator.
        bins: Optional location bins used to annotate location suggestions.
        offers: Offer catalog to pick from.
        customers_per_staff: Customers one staff member covers per hour.
        top_n: Number of peak and low hours to report.

    Returns:
        Recommendations, or None when no hour has observations.
    """
    peak_hours, low_hours = rank_hours(buckets, top_n)
    if not peak_hours:
        return None
    if not offers:
        raise ValueError("Offer catalog must not be empty")
    if rng is None:
        rng = np.random.default_rng()

    by_hour = {b.hour: b for b in buckets}
    staffing = [
        StaffingRecommendation(
            hour=hour,
            time_slot=time_slot(hour),
            average_footfall=by_hour[hour].average,
            staff_count=staff_needed(by_hour[hour].average, customers_per_staff),
        )
        for hour in peak_hours
    ]

    marketing = []
    for hour in low_hours:
        offer = offers[int(rng.integers(len(offers)))]
        marketing.append(
            MarketingRecommendation(
                hour=hour,
                time_slot=time_slot(hour),
                discount_percent=offer.discount_percent,
                description=offer.description,
            )
        )

    observed = [b.average for b in buckets if b.count]
    location = location_recommendations(bins) if has_location_data else []

    logger.info(
        "Recommendations: peak hours %s, low hours %s", peak_hours, low_hours
    )
    return Recommendations(
        peak_hours=peak_hours,
        low_hours=low_hours,
        staffing=staffing,
        marketing=marketing,
        location=location,
        avg_footfall=round_half_up(sum(observed) / len(observed)),
    )

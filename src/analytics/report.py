"""Assembles every engine output for one validated upload.

The report is the hand-off to the CLI, the dashboard and file exports.
It holds plain data only; the "no data" state is ``None`` throughout.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import numpy as np

from src.analytics.aggregation import (
    HourlyBucket,
    SummaryKPIs,
    daily_totals,
    hourly_buckets,
    summary_kpis,
)
from src.analytics.forecast import Forecast, forecast_next_24h
from src.analytics.geo import LocationBin, bin_locations, map_center, max_intensity
from src.analytics.recommendations import Offer, Recommendations, recommend
from src.analytics.records import ValidationReport
from src.utils.config import AppConfig

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsReport:
    """Combined analytics, forecast and recommendations for one upload."""

    summary: Optional[SummaryKPIs]
    buckets: list[HourlyBucket]
    daily_totals: dict[str, int]
    location_bins: list[LocationBin]
    map_center: Optional[tuple[float, float]]
    forecast: Optional[Forecast]
    recommendations: Optional[Recommendations]
    has_location_data: bool
    warnings: list[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def hourly_averages(self) -> list[float]:
        return [b.average for b in self.buckets]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        peak = max_intensity(self.location_bins)
        return {
            "generated_at": self.generated_at.isoformat(),
            "has_location_data": self.has_location_data,
            "summary": self.summary.to_dict() if self.summary else None,
            "hourly_averages": self.hourly_averages,
            "hourly_counts": [b.count for b in self.buckets],
            "daily_totals": dict(self.daily_totals),
            "location_bins": [b.to_dict(peak) for b in self.location_bins],
            "map_center": list(self.map_center) if self.map_center else None,
            "forecast": self.forecast.to_dict() if self.forecast else None,
            "recommendations": (
                self.recommendations.to_dict() if self.recommendations else None
            ),
            "warnings": list(self.warnings),
        }


def build_report(
    validation: ValidationReport,
    config: Optional[AppConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> AnalyticsReport:
    """Run every engine component over a validated upload.

    Args:
        validation: Output of ``validate_rows``.
        config: Application config; defaults are used when omitted.
        rng: Random generator shared by the forecast perturbation and offer
            selection. Pass a seeded generator for reproducible reports.

    Returns:
        AnalyticsReport for the upload.
    """
    config = config or AppConfig()
    if rng is None:
        rng = np.random.default_rng()
    records = validation.records

    buckets = hourly_buckets(records)
    bins: list[LocationBin] = []
    if validation.has_location_data:
        bins = bin_locations(records, precision=config.geo.precision)

    fc = config.forecast
    forecast = forecast_next_24h(
        records,
        rng=rng,
        window_size=fc.window_size,
        horizon_hours=fc.horizon_hours,
        perturbation=fc.perturbation,
        min_prediction=fc.min_prediction,
        high_confidence_variance=fc.high_confidence_variance,
        medium_confidence_variance=fc.medium_confidence_variance,
    )

    rc = config.recommendations
    recommendations = recommend(
        buckets,
        validation.has_location_data,
        rng=rng,
        bins=bins,
        offers=[Offer(o["discount_percent"], o["description"]) for o in rc.offers],
        customers_per_staff=rc.customers_per_staff,
        top_n=rc.top_n,
    )

    report = AnalyticsReport(
        summary=summary_kpis(records),
        buckets=buckets,
        daily_totals=daily_totals(records),
        location_bins=bins,
        map_center=map_center(records) if validation.has_location_data else None,
        forecast=forecast,
        recommendations=recommendations,
        has_location_data=validation.has_location_data,
        warnings=list(validation.warnings),
    )
    logger.info(
        "Report built for %d records (%d location bins)", len(records), len(bins)
    )
    return report

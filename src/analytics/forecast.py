"""Short-horizon footfall forecast from a seasonal hourly baseline.

The baseline is the rounded hourly average over the most recent week of
records. Each projected hour adds a bounded uniform perturbation drawn from
an injectable random generator so results can be reproduced with a seed.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import numpy as np

from src.analytics.aggregation import hourly_buckets, round_half_up
from src.analytics.records import FootfallRecord, chronological_key

logger = logging.getLogger(__name__)

WINDOW_SIZE = 168
HORIZON_HOURS = 24
PERTURBATION = 2.5
MIN_PREDICTION = 5
RECENT_RECORDS = 24
HIGH_CONFIDENCE_VARIANCE = 100.0
MEDIUM_CONFIDENCE_VARIANCE = 300.0


@dataclass(frozen=True)
class ForecastPoint:
    """Predicted footfall for one future hour."""

    timestamp: datetime
    predicted_footfall: int

    @property
    def hour_label(self) -> str:
        return self.timestamp.strftime("%H:%M")

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "hour": self.hour_label,
            "predicted_footfall": self.predicted_footfall,
        }


@dataclass(frozen=True)
class Forecast:
    """A 24-hour projection with derived insights.

    Attributes:
        points: One ForecastPoint per projected hour.
        baseline: Rounded hourly averages (24 values) used as the seasonal base.
        total_predicted: Sum of predictions.
        avg_predicted: Rounded mean prediction.
        peak_point: First point with the highest prediction.
        last_observed_total: Footfall of the 24 most recent records.
        trend_direction: ``'up'`` or ``'down'`` versus ``last_observed_total``.
        trend_percent: Relative change in percent, or None when the prior
            total is zero.
        variance: Population variance of ``baseline`` around ``avg_predicted``.
        confidence: ``'high'``, ``'medium'`` or ``'low'``.
    """

    points: tuple[ForecastPoint, ...]
    baseline: tuple[int, ...]
    total_predicted: int
    avg_predicted: int
    peak_point: ForecastPoint
    last_observed_total: int
    trend_direction: str
    trend_percent: Optional[float]
    variance: float
    confidence: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "baseline": list(self.baseline),
            "total_predicted": self.total_predicted,
            "avg_predicted": self.avg_predicted,
            "peak_hour": self.peak_point.hour_label,
            "last_observed_total": self.last_observed_total,
            "trend_direction": self.trend_direction,
            "trend_percent": self.trend_percent,
            "variance": self.variance,
            "confidence": self.confidence,
        }


def classify_confidence(
    variance: float,
    high_threshold: float = HIGH_CONFIDENCE_VARIANCE,
    medium_threshold: float = MEDIUM_CONFIDENCE_VARIANCE,
) -> str:
    """Map baseline variance onto a confidence label."""
    if variance < high_threshold:
        return "high"
    if variance < medium_threshold:
        return "medium"
    return "low"


def trend_percent(total_predicted: int, last_observed_total: int) -> Optional[float]:
    """Relative change in percent, rounded half-up to one decimal.

    Returns None when ``last_observed_total`` is zero.
    """
    if last_observed_total == 0:
        return None
    # tenths of a percent, kept integral so ties like 12.25 round up
    tenths = abs(total_predicted - last_observed_total) * 1000 / last_observed_total
    return round_half_up(tenths) / 10


def seasonal_baseline(records: Sequence[FootfallRecord]) -> list[int]:
    """Rounded hourly averages of ``records``, 0 for unobserved hours."""
    return [round_half_up(b.average) for b in hourly_buckets(records)]


def forecast_next_24h(
    records: Sequence[FootfallRecord],
    rng: Optional[np.random.Generator] = None,
    window_size: int = WINDOW_SIZE,
    horizon_hours: int = HORIZON_HOURS,
    perturbation: float = PERTURBATION,
    min_prediction: int = MIN_PREDICTION,
    high_confidence_variance: float = HIGH_CONFIDENCE_VARIANCE,
    medium_confidence_variance: float = MEDIUM_CONFIDENCE_VARIANCE,
) -> Optional[Forecast]:
    """Project footfall for the hours following the latest observation.

    Args:
        records: Footfall records in any order.
        rng: Source of the per-point perturbation. Anything with a numpy-style
            ``uniform(low, high)`` works. Defaults to an unseeded generator.
        window_size: Number of most recent records feeding the baseline.
        horizon_hours: Number of hours to project.
        perturbation: Half-width of the uniform perturbation.
        min_prediction: Floor applied to every prediction.
        high_confidence_variance: Variance below which confidence is high.
        medium_confidence_variance: Variance below which confidence is medium.

    Returns:
        Forecast, or None when ``records`` is empty.

    Raises:
        ValueError: If ``window_size`` or ``horizon_hours`` is not positive.
    """
    if window_size < 1 or horizon_hours < 1:
        raise ValueError(
            f"window_size and horizon_hours must be positive, "
            f"got {window_size} and {horizon_hours}"
        )
    if not records:
        return None
    if rng is None:
        rng = np.random.default_rng()

    ordered = sorted(records, key=lambda r: chronological_key(r.timestamp))
    window = ordered[-window_size:]
    baseline = seasonal_baseline(window)
    last_timestamp = ordered[-1].timestamp

    points = []
    for hours_ahead in range(1, horizon_hours + 1):
        future = last_timestamp + timedelta(hours=hours_ahead)
        trend = float(rng.uniform(-perturbation, perturbation))
        predicted = max(min_prediction, round_half_up(baseline[future.hour] + trend))
        points.append(ForecastPoint(timestamp=future, predicted_footfall=predicted))

    total = sum(p.predicted_footfall for p in points)
    avg_predicted = round_half_up(total / len(points))
    peak_point = points[0]
    for point in points[1:]:
        if point.predicted_footfall > peak_point.predicted_footfall:
            peak_point = point

    last_observed_total = sum(r.footfall for r in window[-RECENT_RECORDS:])
    variance = float(np.mean((np.asarray(baseline, dtype=float) - avg_predicted) ** 2))

    forecast = Forecast(
        points=tuple(points),
        baseline=tuple(baseline),
        total_predicted=total,
        avg_predicted=avg_predicted,
        peak_point=peak_point,
        last_observed_total=last_observed_total,
        trend_direction="up" if total > last_observed_total else "down",
        trend_percent=trend_percent(total, last_observed_total),
        variance=variance,
        confidence=classify_confidence(
            variance, high_confidence_variance, medium_confidence_variance
        ),
    )
    logger.info(
        "Forecast from %s: total=%d trend=%s confidence=%s",
        last_timestamp.isoformat(),
        total,
        forecast.trend_direction,
        forecast.confidence,
    )
    return forecast

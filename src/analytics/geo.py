"""Geospatial binning of located footfall records.

Quantizes coordinates to a fixed number of decimals and sums footfall per
cell. Four decimals is roughly 11 m at the equator; nearby observations
that round to the same key merge into one bin.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from src.analytics.records import FootfallRecord

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 4


@dataclass
class LocationBin:
    """Summed footfall for one quantized coordinate cell.

    Attributes:
        key: Rounded ``(lat, lng)`` identifying the cell.
        lat: Latitude of the first record seen in the cell.
        lng: Longitude of the first record seen in the cell.
        count: Summed footfall of every record in the cell.
    """

    key: tuple[float, float]
    lat: float
    lng: float
    count: int = 0

    def intensity(self, max_count: int) -> float:
        """Return ``count / max_count``; callers pass ``max_intensity(bins)``."""
        return self.count / max_count

    def to_dict(self, max_count: Optional[int] = None) -> dict[str, Any]:
        data: dict[str, Any] = {"lat": self.lat, "lng": self.lng, "count": self.count}
        if max_count is not None:
            data["intensity"] = self.intensity(max_count)
        return data


def bin_key(
    latitude: float, longitude: float, precision: int = DEFAULT_PRECISION
) -> tuple[float, float]:
    """Round a coordinate pair to the bin key."""
    return (round(latitude, precision), round(longitude, precision))


def bin_locations(
    records: Sequence[FootfallRecord],
    precision: int = DEFAULT_PRECISION,
) -> list[LocationBin]:
    """Aggregate footfall per rounded coordinate.

    Records missing either coordinate are skipped. Output order is the
    first-seen order of each key, so identical input yields identical
    output.

    Args:
        records: Footfall records in any order.
        precision: Number of decimals kept in the bin key.

    Returns:
        List of LocationBin, empty when no record is located.
    """
    bins: dict[tuple[float, float], LocationBin] = {}
    for record in records:
        if not record.has_location:
            continue
        key = bin_key(record.latitude, record.longitude, precision)
        if key not in bins:
            bins[key] = LocationBin(key=key, lat=record.latitude, lng=record.longitude)
        bins[key].count += record.footfall

    logger.debug("Binned located records into %d cells", len(bins))
    return list(bins.values())


def max_intensity(bins: Sequence[LocationBin]) -> int:
    """Largest bin count, never below 1."""
    return max([b.count for b in bins] + [1])


def top_bins(bins: Sequence[LocationBin], n: int = 20) -> list[LocationBin]:
    """Return the ``n`` busiest bins, count descending, ties in input order."""
    return sorted(bins, key=lambda b: b.count, reverse=True)[:n]


def map_center(records: Sequence[FootfallRecord]) -> Optional[tuple[float, float]]:
    """Mean coordinate of located records, or None when none are located."""
    located = [r for r in records if r.has_location]
    if not located:
        return None
    lat = sum(r.latitude for r in located) / len(located)
    lng = sum(r.longitude for r in located) / len(located)
    return (lat, lng)

"""Footfall record model and upload validation.

Converts a parsed table (rows as key/value mappings) into immutable
``FootfallRecord`` instances and decides whether the upload carries
geolocation columns.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("timestamp", "footfall")
LOCATION_COLUMNS = ("latitude", "longitude")


class SchemaError(ValueError):
    """Raised when an upload is missing required columns or has malformed rows."""


class EmptyInputError(ValueError):
    """Raised when an upload contains no rows."""


@dataclass(frozen=True)
class FootfallRecord:
    """A single footfall observation.

    Attributes:
        timestamp: Observation time. May carry a UTC offset.
        footfall: Number of visitors observed.
        latitude: Optional latitude of the observation.
        longitude: Optional longitude of the observation.
    """

    timestamp: datetime
    footfall: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        """True when both coordinates are present."""
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "footfall": self.footfall,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass
class ValidationReport:
    """Outcome of validating an uploaded table.

    Attributes:
        records: Validated records in upload order.
        has_location_data: Whether the header advertised both coordinates.
        row_count: Number of rows in the upload.
        rows_missing_coordinates: Rows lacking a coordinate even though the
            header advertised location columns.
        warnings: User-facing messages about degraded features.
    """

    records: tuple[FootfallRecord, ...]
    has_location_data: bool
    row_count: int
    rows_missing_coordinates: int = 0
    warnings: list[str] = field(default_factory=list)


def chronological_key(timestamp: datetime) -> datetime:
    """Return a sort key that orders naive and offset-aware timestamps together.

    Naive timestamps are treated as UTC for ordering only.
    """
    if timestamp.tzinfo is not None:
        return timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp


def has_location_columns(first_row: Mapping[str, Any]) -> bool:
    """Check whether both coordinate columns are present in a row's keys.

    This is a header-level check: a column being present says nothing
    about whether every row fills it in.
    """
    return all(col in first_row for col in LOCATION_COLUMNS)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp string (or pass through a datetime).

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value
    if value is None:
        raise ValueError("timestamp is empty")
    return datetime.fromisoformat(str(value).strip())


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _parse_footfall(value: Any) -> int:
    if _is_blank(value):
        raise ValueError("footfall is empty")
    try:
        number = int(str(value).strip())
    except ValueError:
        # "35.0" and float cells from the CSV reader
        as_float = float(value)
        if not math.isfinite(as_float) or not as_float.is_integer():
            raise ValueError(f"footfall must be a whole number, got {value!r}")
        number = int(as_float)
    if number < 0:
        raise ValueError(f"footfall must be non-negative, got {value!r}")
    return number


def _parse_coordinate(value: Any) -> Optional[float]:
    if _is_blank(value):
        return None
    return float(value)


def record_from_row(row: Mapping[str, Any]) -> FootfallRecord:
    """Build a FootfallRecord from a single parsed row.

    Raises:
        ValueError: If a field cannot be converted.
    """
    return FootfallRecord(
        timestamp=parse_timestamp(row.get("timestamp")),
        footfall=_parse_footfall(row.get("footfall")),
        latitude=_parse_coordinate(row.get("latitude")),
        longitude=_parse_coordinate(row.get("longitude")),
    )


def validate_rows(rows: Sequence[Mapping[str, Any]]) -> ValidationReport:
    """Validate a parsed upload and convert it into footfall records.

    Required columns are checked against the first row's keys, as is the
    presence of location columns.

    Args:
        rows: Parsed table rows in upload order.

    Returns:
        ValidationReport with the converted records.

    Raises:
        EmptyInputError: If ``rows`` is empty.
        SchemaError: If required columns are missing or a row is malformed.
    """
    if not rows:
        raise EmptyInputError("Upload is empty")

    first_row = rows[0]
    missing = [col for col in REQUIRED_COLUMNS if col not in first_row]
    if missing:
        raise SchemaError(
            f"Upload must contain timestamp and footfall columns; missing: "
            f"{', '.join(missing)}"
        )

    has_location = has_location_columns(first_row)

    records = []
    for index, row in enumerate(rows, start=1):
        try:
            records.append(record_from_row(row))
        except (TypeError, ValueError) as exc:
            raise SchemaError(f"Row {index}: {exc}") from exc

    warnings: list[str] = []
    missing_coords = 0
    if has_location:
        missing_coords = sum(1 for r in records if not r.has_location)
        if missing_coords:
            warnings.append(
                f"{missing_coords} of {len(records)} rows have no coordinates "
                "and are left out of the heatmap"
            )
    else:
        warnings.append(
            "Heatmap features will be disabled due to missing geolocation data"
        )

    logger.info(
        "Validated %d records (location data: %s)", len(records), has_location
    )
    return ValidationReport(
        records=tuple(records),
        has_location_data=has_location,
        row_count=len(rows),
        rows_missing_coordinates=missing_coords,
        warnings=warnings,
    )

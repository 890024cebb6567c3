"""CSV I/O for footfall uploads and report exports.

Reads uploaded CSV files into row mappings for validation, writes the
upload template, and flattens reports into a single CSV row.
"""

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from src.analytics.records import SchemaError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {".csv"}

TEMPLATE_COLUMNS = ["timestamp", "footfall", "latitude", "longitude"]
TEMPLATE_ROWS = [
    {
        "timestamp": "2024-01-01 10:00",
        "footfall": 35,
        "latitude": 19.0760,
        "longitude": 72.8777,
    },
    {
        "timestamp": "2024-01-01 11:00",
        "footfall": 42,
        "latitude": 19.0765,
        "longitude": 72.8780,
    },
]


def validate_csv_path(path: str) -> Path:
    """Validate that a CSV file exists and has a supported extension.

    Args:
        path: Path to the CSV file.

    Returns:
        Resolved Path object.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file extension is not supported.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    if csv_path.suffix.lower() not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Unsupported file format '{csv_path.suffix}'. "
            f"Supported: {SUPPORTED_FORMATS}"
        )
    return csv_path


def frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame into row dicts with missing cells as None."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(df.notna(), None)
    return cleaned.to_dict(orient="records")


def read_footfall_csv(source: Any) -> list[dict[str, Any]]:
    """Read a footfall CSV into row mappings.

    Timestamps are kept as strings so the validator decides how to parse
    them. Blank lines are skipped.

    Args:
        source: File path or file-like object.

    Returns:
        List of row dicts in file order; empty for a file with no rows.

    Raises:
        SchemaError: If the file is not UTF-8 text or not parseable as CSV.
    """
    try:
        df = pd.read_csv(
            source,
            dtype={"timestamp": str},
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        logger.warning("CSV source %s is empty", source)
        return []
    except (UnicodeDecodeError, pd.errors.ParserError) as exc:
        raise SchemaError(f"Could not read CSV: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    rows = frame_to_rows(df)
    logger.info("Read %d rows (columns: %s)", len(rows), list(df.columns))
    return rows


def template_csv_text() -> str:
    """Return the upload template as CSV text."""
    return pd.DataFrame(TEMPLATE_ROWS, columns=TEMPLATE_COLUMNS).to_csv(index=False)


def write_template_csv(output_path: str) -> Path:
    """Write the upload template CSV.

    Args:
        output_path: Destination file path.

    Returns:
        Path to the written template.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template_csv_text())
    logger.info("Template written to %s", path)
    return path


def flatten_report(report: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts into ``a.b`` keys, dropping list values."""
    flat: dict[str, Any] = {}
    for key, value in report.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten_report(value, prefix=f"{name}."))
        elif not isinstance(value, list):
            flat[name] = value
    return flat

"""Generate a synthetic footfall CSV for testing and demonstration.

Creates hourly footfall for a run of days with weekend uplift, lunch and
evening peaks, quiet nights, and coordinates scattered around a store.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

STORE_LAT = 19.0760
STORE_LNG = 72.8777


def expected_footfall(moment: datetime) -> int:
    """Base footfall for an hour before random jitter."""
    base = 20
    if moment.weekday() >= 5:
        base += 15
    if 11 <= moment.hour <= 13 or 17 <= moment.hour <= 20:
        base += 25
    if moment.hour <= 7:
        base -= 10
    return base


def generate_sample_data(
    output_path: str = "data/sample/footfall.csv",
    days: int = 30,
    start: datetime = datetime(2024, 1, 1),
    with_location: bool = True,
    seed: Optional[int] = 42,
) -> str:
    """Generate a synthetic footfall CSV.

    Args:
        output_path: Path for the output CSV file.
        days: Number of days of hourly records.
        start: Timestamp of the first record.
        with_location: Include latitude and longitude columns.
        seed: Random seed; None for a different file every run.

    Returns:
        Path to the generated CSV file.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(seed)

    rows = []
    for offset in range(days * 24):
        moment = start + timedelta(hours=offset)
        jitter = rng.uniform(-7.5, 7.5)
        row = {
            "timestamp": moment.strftime("%Y-%m-%d %H:%M"),
            "footfall": max(5, int(np.floor(expected_footfall(moment) + jitter))),
        }
        if with_location:
            row["latitude"] = round(STORE_LAT + rng.uniform(-0.005, 0.005), 6)
            row["longitude"] = round(STORE_LNG + rng.uniform(-0.005, 0.005), 6)
        rows.append(row)

    pd.DataFrame(rows).to_csv(output_path, index=False)
    return output_path


if __name__ == "__main__":
    path = generate_sample_data()
    print(f"Sample data generated: {path}")

"""Tests for temporal aggregation and summary KPIs."""

from datetime import datetime, timedelta

from src.analytics.aggregation import (
    HourlyBucket,
    daily_totals,
    hour_label,
    hourly_averages,
    hourly_buckets,
    round_half_up,
    summary_kpis,
    time_slot,
)
from src.analytics.records import FootfallRecord


def _day(
    footfalls: list[int], start: datetime = datetime(2024, 1, 1)
) -> list[FootfallRecord]:
    """One record per hour starting at ``start``."""
    return [
        FootfallRecord(start + timedelta(hours=i), value)
        for i, value in enumerate(footfalls)
    ]


class TestHelpers:
    """Tests for rounding and label helpers."""

    def test_round_half_up(self) -> None:
        """Halves round up, unlike Python's banker's rounding."""
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4) == 2
        assert round_half_up(0.0) == 0

    def test_hour_label(self) -> None:
        """Hour labels have no zero padding."""
        assert hour_label(9) == "9:00"
        assert hour_label(17) == "17:00"

    def test_time_slot(self) -> None:
        """Time slots span one hour."""
        assert time_slot(17) == "17:00 - 18:00"
        assert time_slot(23) == "23:00 - 24:00"


class TestHourlyBucket:
    """Tests for the HourlyBucket dataclass."""

    def test_empty_bucket(self) -> None:
        """An empty bucket averages to zero."""
        bucket = HourlyBucket(hour=3)
        assert bucket.count == 0
        assert bucket.total == 0
        assert bucket.average == 0.0

    def test_average(self) -> None:
        """Average is the mean of the values."""
        bucket = HourlyBucket(hour=10, values=(10, 20, 45))
        assert bucket.total == 75
        assert bucket.average == 25.0


class TestHourlyBuckets:
    """Tests for hourly_buckets and hourly_averages."""

    def test_always_24_buckets(self) -> None:
        """Exactly 24 buckets are returned, even for empty input."""
        buckets = hourly_buckets([])
        assert len(buckets) == 24
        assert [b.hour for b in buckets] == list(range(24))
        assert hourly_averages([]) == [0.0] * 24

    def test_counts_sum_to_record_count(self) -> None:
        """Every record lands in exactly one bucket."""
        records = _day([5] * 60)
        assert sum(b.count for b in hourly_buckets(records)) == 60

    def test_reconstructs_total(self) -> None:
        """Average times count summed over hours equals total footfall."""
        records = _day([7, 13, 21, 4, 9] * 11)
        buckets = hourly_buckets(records)
        rebuilt = sum(b.average * b.count for b in buckets)
        assert abs(rebuilt - sum(r.footfall for r in records)) < 1e-9

    def test_groups_across_days(self) -> None:
        """Same hour on different days shares a bucket."""
        records = [
            FootfallRecord(datetime(2024, 1, 1, 10), 10),
            FootfallRecord(datetime(2024, 1, 2, 10), 30),
        ]
        bucket = hourly_buckets(records)[10]
        assert bucket.values == (10, 30)
        assert bucket.average == 20.0

    def test_uses_local_hour_of_aware_timestamp(self) -> None:
        """The hour is read as written, not converted to UTC."""
        ts = datetime.fromisoformat("2024-01-01T10:00:00+05:30")
        buckets = hourly_buckets([FootfallRecord(ts, 8)])
        assert buckets[10].count == 1


class TestDailyTotals:
    """Tests for daily_totals."""

    def test_sums_per_day(self) -> None:
        """Footfall is summed per calendar date."""
        records = _day([1] * 30)
        assert daily_totals(records) == {"2024-01-01": 24, "2024-01-02": 6}

    def test_first_seen_order(self) -> None:
        """Keys keep upload order, not chronological order."""
        records = [
            FootfallRecord(datetime(2024, 1, 2, 9), 5),
            FootfallRecord(datetime(2024, 1, 1, 9), 7),
        ]
        assert list(daily_totals(records)) == ["2024-01-02", "2024-01-01"]

    def test_totals_match_overall_total(self) -> None:
        """Daily totals add up to the overall total."""
        records = _day([3, 8, 15] * 20)
        assert sum(daily_totals(records).values()) == sum(r.footfall for r in records)


class TestSummaryKPIs:
    """Tests for summary_kpis."""

    def test_empty_returns_none(self) -> None:
        """No records means no summary."""
        assert summary_kpis([]) is None

    def test_flat_day(self) -> None:
        """A flat day of 20s has peak and lowest at hour 0."""
        kpis = summary_kpis(_day([20] * 24))
        assert kpis.total == 480
        assert kpis.average == 20
        assert kpis.peak_hour == 0
        assert kpis.lowest_hour == 0
        assert kpis.peak_day == "2024-01-01"
        assert kpis.record_count == 24

    def test_total_equals_sum(self) -> None:
        """Total is the plain sum of footfall."""
        records = _day([3, 50, 7, 12])
        assert summary_kpis(records).total == 72

    def test_average_rounds_half_up(self) -> None:
        """Average uses half-up rounding."""
        kpis = summary_kpis(_day([2, 3]))
        assert kpis.average == 3

    def test_lowest_hour_ignores_unobserved(self) -> None:
        """Hours without observations never count as the lowest."""
        records = [
            FootfallRecord(datetime(2024, 1, 1, 10), 50),
            FootfallRecord(datetime(2024, 1, 1, 11), 30),
        ]
        kpis = summary_kpis(records)
        assert kpis.peak_hour == 10
        assert kpis.lowest_hour == 11

    def test_peak_day_tie_goes_to_first_seen(self) -> None:
        """Tied days resolve to the first one uploaded."""
        records = [
            FootfallRecord(datetime(2024, 1, 3, 9), 10),
            FootfallRecord(datetime(2024, 1, 1, 9), 10),
        ]
        assert summary_kpis(records).peak_day == "2024-01-03"

    def test_period_bounds_from_unsorted_input(self) -> None:
        """Period start and end come from the chronological extremes."""
        records = [
            FootfallRecord(datetime(2024, 1, 2, 9), 1),
            FootfallRecord(datetime(2024, 1, 1, 9), 1),
            FootfallRecord(datetime(2024, 1, 3, 9), 1),
        ]
        kpis = summary_kpis(records)
        assert kpis.period_start == datetime(2024, 1, 1, 9)
        assert kpis.period_end == datetime(2024, 1, 3, 9)

    def test_to_dict_labels(self) -> None:
        """to_dict includes formatted hour labels."""
        data = summary_kpis(_day([20] * 24)).to_dict()
        assert data["peak_hour_label"] == "0:00"
        assert data["period_start"] == "2024-01-01T00:00:00"

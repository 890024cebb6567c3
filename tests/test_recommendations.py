"""Tests for staffing, marketing and location recommendations."""

from datetime import datetime

import numpy as np
import pytest

from src.analytics.aggregation import hourly_buckets
from src.analytics.geo import LocationBin
from src.analytics.recommendations import (
    DEFAULT_OFFERS,
    Offer,
    location_recommendations,
    rank_hours,
    recommend,
    staff_needed,
)
from src.analytics.records import FootfallRecord


class FixedChoice:
    """Generator stand-in that always picks the same catalog index."""

    def __init__(self, index: int) -> None:
        self.index = index

    def integers(self, high: int) -> int:
        return self.index


def _buckets(by_hour: dict[int, int]):
    records = [
        FootfallRecord(datetime(2024, 1, 1, hour), value)
        for hour, value in by_hour.items()
    ]
    return hourly_buckets(records)


SAMPLE = {10: 60, 11: 45, 12: 30, 13: 15, 14: 5}


class TestStaffNeeded:
    """Tests for staff_needed."""

    def test_rounds_up(self) -> None:
        """Partial staff needs round up."""
        assert staff_needed(60) == 4
        assert staff_needed(46) == 4
        assert staff_needed(0.5) == 1

    def test_custom_ratio(self) -> None:
        """The customers-per-staff ratio is configurable."""
        assert staff_needed(60, customers_per_staff=10) == 6


class TestRankHours:
    """Tests for rank_hours."""

    def test_peak_and_low(self) -> None:
        """Peak hours are busiest first, low hours quietest first."""
        peak, low = rank_hours(_buckets(SAMPLE))
        assert peak == [10, 11, 12]
        assert low == [14, 13, 12]

    def test_unobserved_hours_excluded(self) -> None:
        """Fewer observed hours give shorter lists."""
        peak, low = rank_hours(_buckets({9: 10, 17: 40}))
        assert peak == [17, 9]
        assert low == [9, 17]

    def test_ties_keep_hour_order(self) -> None:
        """Equal averages keep ascending hour order."""
        peak, low = rank_hours(_buckets({8: 10, 9: 10, 10: 10, 11: 10}))
        assert peak == [8, 9, 10]
        assert low == [8, 9, 10]


class TestLocationRecommendations:
    """Tests for location_recommendations."""

    def test_templates(self) -> None:
        """Three fixed suggestions are returned."""
        recs = location_recommendations()
        assert len(recs) == 3
        assert recs[0].area == "High density zone detected"
        assert recs[0].impact == "High"

    def test_densest_bin_named(self) -> None:
        """With bins, the first suggestion names the densest cell."""
        bins = [
            LocationBin((19.076, 72.8777), 19.076, 72.8777, 5),
            LocationBin((19.078, 72.879), 19.078, 72.879, 30),
        ]
        recs = location_recommendations(bins)
        assert recs[0].area == "High density zone detected near 19.0780, 72.8790"


class TestRecommend:
    """Tests for recommend."""

    def test_empty_returns_none(self) -> None:
        """No observed hours means no recommendations."""
        assert recommend(hourly_buckets([]), has_location_data=False) is None

    def test_staffing(self) -> None:
        """Staffing covers each peak hour."""
        recs = recommend(_buckets(SAMPLE), False, rng=FixedChoice(0))
        assert [s.hour for s in recs.staffing] == [10, 11, 12]
        assert [s.staff_count for s in recs.staffing] == [4, 3, 2]
        assert recs.staffing[0].time_slot == "10:00 - 11:00"
        assert recs.staffing[0].reason == "Peak traffic period"

    def test_staff_at_least_one(self) -> None:
        """Any non-zero peak needs at least one staff member."""
        recs = recommend(_buckets({3: 1}), False, rng=FixedChoice(0))
        assert recs.staffing[0].staff_count == 1

    def test_marketing_uses_catalog(self) -> None:
        """Each low hour gets the offer chosen by the generator."""
        recs = recommend(_buckets(SAMPLE), False, rng=FixedChoice(1))
        assert [m.hour for m in recs.marketing] == [14, 13, 12]
        assert all(m.discount_percent == 15 for m in recs.marketing)
        assert all(m.description == "Happy hour special" for m in recs.marketing)

    def test_seeded_offers_reproducible(self) -> None:
        """The same seed picks the same offers."""
        first = recommend(_buckets(SAMPLE), False, rng=np.random.default_rng(5))
        second = recommend(_buckets(SAMPLE), False, rng=np.random.default_rng(5))
        assert first.marketing == second.marketing
        catalog = {(o.discount_percent, o.description) for o in DEFAULT_OFFERS}
        for m in first.marketing:
            assert (m.discount_percent, m.description) in catalog

    def test_custom_offers(self) -> None:
        """A custom catalog replaces the defaults."""
        offers = [Offer(40, "Clearance")]
        recs = recommend(_buckets(SAMPLE), False, offers=offers)
        assert all(m.description == "Clearance" for m in recs.marketing)

    def test_empty_offers_rejected(self) -> None:
        """An empty offer catalog is a configuration error."""
        with pytest.raises(ValueError, match="Offer catalog"):
            recommend(_buckets(SAMPLE), False, offers=[])

    def test_no_location_suggestions_without_location(self) -> None:
        """Location suggestions need location data."""
        recs = recommend(_buckets(SAMPLE), False, rng=FixedChoice(0))
        assert recs.location == []

    def test_location_suggestions(self) -> None:
        """Location data enables the location suggestions."""
        recs = recommend(_buckets(SAMPLE), True, rng=FixedChoice(0))
        assert len(recs.location) == 3

    def test_avg_footfall(self) -> None:
        """Average footfall is the rounded mean of observed hours."""
        recs = recommend(_buckets(SAMPLE), False, rng=FixedChoice(0))
        assert recs.avg_footfall == 31

    def test_top_n(self) -> None:
        """The number of ranked hours is configurable."""
        recs = recommend(_buckets(SAMPLE), False, rng=FixedChoice(0), top_n=2)
        assert recs.peak_hours == [10, 11]
        assert recs.low_hours == [14, 13]

    def test_to_dict(self) -> None:
        """to_dict is plain data."""
        data = recommend(_buckets(SAMPLE), True, rng=FixedChoice(2)).to_dict()
        assert data["peak_hours"] == [10, 11, 12]
        assert data["marketing"][0]["discount_percent"] == 25
        assert data["location"][0]["impact"] == "High"

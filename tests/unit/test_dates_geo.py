"""Tests for calendar arithmetic and distance helpers."""

from datetime import UTC, datetime

import pytest

from tests.unit.engine_test_helpers import BERN, ZURICH, local_datetime
from tripfill.app.utils.dates import (
    date_difference,
    hours_difference,
    local_date,
    localize,
    same_date,
)
from tripfill.app.utils.geo import haversine_km


class TestDateDifference:
    """Tests for calendar-day differences."""

    def test_late_evening_to_early_morning_is_one_day(self):
        assert date_difference(local_datetime(2025, 6, 1, 23), local_datetime(2025, 6, 2, 1)) == 1

    def test_same_day(self):
        assert date_difference(local_datetime(2025, 6, 1, 8), local_datetime(2025, 6, 1, 22)) == 0

    def test_negative_when_end_is_earlier(self):
        assert date_difference(local_datetime(2025, 6, 3, 8), local_datetime(2025, 6, 1, 8)) == -2

    def test_uses_trip_zone_for_utc_values(self):
        # 22:30 UTC is already the next day in Zurich (summer time)
        start = datetime(2025, 6, 1, 22, 30, tzinfo=UTC)
        end = local_datetime(2025, 6, 2, 9)

        assert date_difference(start, end) == 0
        assert date_difference(start, end, zone="UTC") == 1


class TestHoursDifference:
    """Tests for whole-hour differences."""

    def test_truncates(self):
        assert hours_difference(local_datetime(2025, 6, 1, 8, 15), local_datetime(2025, 6, 1, 22)) == 13

    def test_negative_truncates_toward_zero(self):
        assert hours_difference(local_datetime(2025, 6, 1, 10, 30), local_datetime(2025, 6, 1, 9)) == -1


def test_same_date_and_local_date():
    assert same_date(local_datetime(2025, 6, 1, 0, 5), local_datetime(2025, 6, 1, 23, 55))
    assert not same_date(local_datetime(2025, 6, 1, 23), local_datetime(2025, 6, 2, 1))
    assert local_date(datetime(2025, 6, 1, 23, 0)).day == 1


def test_localize_treats_naive_values_as_local():
    naive = datetime(2025, 6, 1, 8, 0)

    assert localize(naive) == local_datetime(2025, 6, 1, 8)


class TestHaversine:
    """Tests for great-circle distance."""

    def test_zero_distance(self):
        assert haversine_km(47.3769, 8.5417, 47.3769, 8.5417) == 0.0

    def test_zurich_bern(self):
        assert ZURICH.haversine_distance_to(BERN) == pytest.approx(95.5, abs=1.5)

    def test_rounded_to_two_decimals(self):
        distance = haversine_km(47.0, 8.0, 47.1, 8.1)

        assert distance == round(distance, 2)

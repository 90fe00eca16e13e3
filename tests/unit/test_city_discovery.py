"""Tests for the city discovery heuristic."""

import pytest

from tests.unit.engine_test_helpers import (
    BERN,
    GENEVA,
    WINTERTHUR,
    ZURICH,
    create_test_city,
    create_test_location,
)
from tripfill.app.planning.city_discovery import (
    candidate_cities,
    choose_next_city,
    rank_candidate_cities,
)
from tripfill.app.planning.errors import NoCandidateCityError, TripPlanningError


def _city(name: str, capacity: float):
    return create_test_city(create_test_location(name, 46.0, 7.0), capacity=capacity)


class TestRankCandidateCities:
    """Tests for the competitive-window ordering."""

    def test_bigger_competitive_city_beats_nearer_one(self):
        """Best 10 km, slack 20 km: 15 and 25 km are competitive, capacity decides."""
        nearest = _city("Nearest", 1)
        near_small = _city("NearSmall", 2)
        near_big = _city("NearBig", 5)
        far = _city("Far", 1)
        candidates = [(nearest, 10.0), (near_small, 15.0), (near_big, 25.0), (far, 50.0)]

        ranked = rank_candidate_cities(candidates, 20.0)

        assert ranked[0] is near_big
        assert ranked[1] is near_small
        assert ranked[-1] is far

    def test_non_competitive_cities_ordered_by_distance(self):
        a = _city("A", 9)
        b = _city("B", 1)
        c = _city("C", 5)

        ranked = rank_candidate_cities([(a, 200.0), (b, 0.0), (c, 100.0)], 20.0)

        assert [city.name for city in ranked] == ["B", "C", "A"]

    def test_capacity_tie_keeps_catalog_order(self):
        first = _city("First", 2)
        second = _city("Second", 2)

        ranked = rank_candidate_cities([(first, 12.0), (second, 5.0)], 20.0)

        assert ranked == [first, second]

    def test_empty_candidates(self):
        assert rank_candidate_cities([], 20.0) == []


class TestChooseNextCity:
    """Tests for choose_next_city."""

    def test_empty_candidates_raise(self):
        with pytest.raises(NoCandidateCityError) as exc_info:
            choose_next_city([], 20.0)

        assert isinstance(exc_info.value, TripPlanningError)

    def test_deterministic_without_mutation(self):
        catalog = [
            create_test_city(WINTERTHUR, radius_km=8, capacity=2),
            create_test_city(BERN, radius_km=10, capacity=2.5),
            create_test_city(GENEVA, radius_km=12, capacity=3),
        ]
        covered = [ZURICH]

        picks = {
            choose_next_city(candidate_cities(catalog, covered), 20.0).name
            for _ in range(5)
        }

        assert picks == {"Winterthur"}


class TestCandidateCities:
    """Tests for candidate_cities."""

    def test_excludes_cities_covering_a_known_location(self):
        catalog = [
            create_test_city(ZURICH, radius_km=15),
            create_test_city(BERN, radius_km=10),
        ]

        candidates = candidate_cities(catalog, [create_test_location("Oerlikon", 47.4111, 8.5441)])

        assert [city.name for city, _ in candidates] == ["Bern"]

    def test_excludes_already_fetched_locations(self):
        catalog = [
            create_test_city(BERN, radius_km=10),
            create_test_city(GENEVA, radius_km=12),
        ]

        candidates = candidate_cities(catalog, [ZURICH], fetched_locations=[BERN])

        assert [city.name for city, _ in candidates] == ["Geneva"]

    def test_distance_is_minimum_over_covered_locations(self):
        catalog = [create_test_city(GENEVA, radius_km=12)]

        [(city, distance)] = candidate_cities(catalog, [ZURICH, BERN])

        assert city.name == "Geneva"
        assert distance == pytest.approx(BERN.haversine_distance_to(GENEVA))

"""City discovery heuristic.

Picks the next catalog city to append to a trip: prefer a nearby, large
city, but never wander far just because a city is marginally bigger.
"""

import logging
from collections.abc import Iterable, Sequence

from tripfill.app.models.city import CityConfig
from tripfill.app.models.common import Location

from .errors import NoCandidateCityError

logger = logging.getLogger(__name__)


def _is_covered(city: CityConfig, locations: Iterable[Location]) -> bool:
    return any(
        location.coordinate.haversine_distance_to(city.location.coordinate) <= city.radius_km
        for location in locations
    )


def candidate_cities(
    catalog: Sequence[CityConfig],
    covered_locations: Sequence[Location],
    fetched_locations: Sequence[Location] = (),
) -> list[tuple[CityConfig, float]]:
    """Catalog cities not yet visited, with their distance to the trip.

    A city is visited when any covered or already-fetched location lies within
    the city's own radius. The distance is the minimum over covered locations.

    Args:
        catalog: City catalog in file order
        covered_locations: Current preferred-location working set
        fetched_locations: Locations already processed by the caller

    Returns:
        (city, distance_km) pairs in catalog order
    """
    candidates = []
    for city in catalog:
        if _is_covered(city, covered_locations) or _is_covered(city, fetched_locations):
            continue
        distance = min(
            (
                location.coordinate.haversine_distance_to(city.location.coordinate)
                for location in covered_locations
            ),
            default=0.0,
        )
        candidates.append((city, distance))
    return candidates


def rank_candidate_cities(
    candidates: Sequence[tuple[CityConfig, float]], slack_km: float
) -> list[CityConfig]:
    """Order candidates best first.

    Cities within ``best distance + slack_km`` are competitive and come first,
    biggest capacity first (catalog order breaks ties). The rest follow by
    ascending distance.
    """
    if not candidates:
        return []

    best_distance = min(distance for _, distance in candidates)
    threshold = best_distance + slack_km

    def rank(item: tuple[CityConfig, float]) -> tuple[int, float]:
        city, distance = item
        if distance <= threshold:
            return (0, -city.capacity)
        return (1, distance)

    return [city for city, _ in sorted(candidates, key=rank)]


def choose_next_city(
    candidates: Sequence[tuple[CityConfig, float]], slack_km: float
) -> CityConfig:
    """Return the best-ranked candidate.

    Raises:
        NoCandidateCityError: If ``candidates`` is empty; the catalog is too
            small for the remaining trip duration.
    """
    ranked = rank_candidate_cities(candidates, slack_km)
    if not ranked:
        raise NoCandidateCityError(
            "No unvisited catalog city is left to add to the trip"
        )

    chosen = ranked[0]
    logger.debug(
        f"Chose city {chosen.name}",
        extra={"candidates": len(candidates), "capacity": chosen.capacity},
    )
    return chosen

"""Activity selector backed by fixture data."""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tripfill.app.models.activity import Activity, contains_match, remove_match
from tripfill.app.models.common import (
    NON_SEARCH_PREFERENCES,
    Coordinate,
    Location,
    Preference,
)
from tripfill.app.utils.geo import haversine_km

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Fixture data: a handful of activities around the larger Swiss cities
SWISS_ACTIVITIES: list[dict[str, Any]] = [
    {"name": "Kunsthaus Zürich", "lat": 47.3704, "lon": 8.5481, "seconds": 7200, "tags": ["museums", "urban"]},
    {"name": "Swiss National Museum", "lat": 47.3790, "lon": 8.5404, "seconds": 7200, "tags": ["museums", "urban", "children_friendly"]},
    {"name": "Uetliberg Trail", "lat": 47.3497, "lon": 8.4916, "seconds": 10800, "tags": ["hike", "scenic_views"]},
    {"name": "Bahnhofstrasse", "lat": 47.3717, "lon": 8.5390, "seconds": 5400, "tags": ["shopping", "urban"]},
    {"name": "Patek Philippe Museum", "lat": 46.1959, "lon": 6.1413, "seconds": 5400, "tags": ["museums", "urban"]},
    {"name": "Jet d'Eau", "lat": 46.2074, "lon": 6.1557, "seconds": 1800, "tags": ["scenic_views", "urban"]},
    {"name": "Salève Cable Car", "lat": 46.1768, "lon": 6.1605, "seconds": 7200, "tags": ["scenic_views", "hike"]},
    {"name": "Kunstmuseum Basel", "lat": 47.5541, "lon": 7.5940, "seconds": 7200, "tags": ["museums"]},
    {"name": "Basel Zoo", "lat": 47.5472, "lon": 7.5781, "seconds": 10800, "tags": ["children_friendly", "urban"]},
    {"name": "Zentrum Paul Klee", "lat": 46.9489, "lon": 7.4745, "seconds": 7200, "tags": ["museums"]},
    {"name": "Bern Old Town", "lat": 46.9480, "lon": 7.4510, "seconds": 5400, "tags": ["urban", "scenic_views"]},
    {"name": "Olympic Museum", "lat": 46.5086, "lon": 6.6340, "seconds": 7200, "tags": ["museums", "sports"]},
    {"name": "Lavaux Vineyards", "lat": 46.4923, "lon": 6.7451, "seconds": 10800, "tags": ["hike", "scenic_views", "foodie"]},
    {"name": "Swiss Museum of Transport", "lat": 47.0525, "lon": 8.3357, "seconds": 10800, "tags": ["museums", "children_friendly"]},
    {"name": "Chapel Bridge", "lat": 47.0517, "lon": 8.3075, "seconds": 1800, "tags": ["scenic_views", "urban"]},
    {"name": "Mount Pilatus", "lat": 46.9794, "lon": 8.2536, "seconds": 14400, "tags": ["hike", "scenic_views"]},
    {"name": "Parco Ciani", "lat": 46.0049, "lon": 8.9586, "seconds": 3600, "tags": ["scenic_views", "wellness"]},
    {"name": "Monte Brè", "lat": 46.0105, "lon": 8.9857, "seconds": 7200, "tags": ["hike", "scenic_views"]},
    {"name": "Harder Kulm", "lat": 46.6974, "lon": 7.8514, "seconds": 7200, "tags": ["scenic_views", "hike"]},
    {"name": "Chillon Castle", "lat": 46.4142, "lon": 6.9275, "seconds": 5400, "tags": ["museums", "scenic_views"]},
    {"name": "Gornergrat", "lat": 45.9837, "lon": 7.7849, "seconds": 10800, "tags": ["scenic_views", "hike"]},
    {"name": "Abbey Library St. Gallen", "lat": 47.4233, "lon": 9.3770, "seconds": 3600, "tags": ["museums"]},
    {"name": "Rhine Falls", "lat": 47.6779, "lon": 8.6153, "seconds": 5400, "tags": ["scenic_views", "children_friendly"]},
    {"name": "Thermal Baths Vals", "lat": 46.6166, "lon": 9.1805, "seconds": 10800, "tags": ["wellness"]},
]


class CatalogEntry(BaseModel):
    """An activity with the preference tags it satisfies."""

    model_config = ConfigDict(frozen=True)

    activity: Activity
    tags: frozenset[Preference] = Field(default_factory=frozenset)


def load_fixture_catalog(rows: list[dict[str, Any]] | None = None) -> list[CatalogEntry]:
    """Build catalog entries from fixture rows."""
    entries = []
    for row in rows if rows is not None else SWISS_ACTIVITIES:
        entries.append(
            CatalogEntry(
                activity=Activity(
                    location=Location(
                        name=row["name"],
                        coordinate=Coordinate(latitude=row["lat"], longitude=row["lon"]),
                    ),
                    estimated_time=row["seconds"],
                    description=row.get("description", ""),
                ),
                tags=frozenset(Preference(tag) for tag in row.get("tags", [])),
            )
        )
    return entries


class FixtureActivitySelector:
    """In-memory activity selector.

    Filters its catalog by distance, excluded names and the current
    preference filter (an entry matches when it carries any wanted tag;
    an empty filter matches everything). Results are nearest first.
    """

    def __init__(
        self,
        catalog: list[CatalogEntry] | None = None,
        preferences: list[Preference] | None = None,
        destinations: list[Location] | None = None,
        radius_m: int = 15000,
        per_destination: int = 3,
    ) -> None:
        self.catalog = catalog if catalog is not None else load_fixture_catalog()
        self.destinations = list(destinations or [])
        self.radius_m = radius_m
        self.per_destination = per_destination
        self.preferences: frozenset[Preference] = frozenset()
        self.update_preferences(preferences or [])

    def update_preferences(self, preferences: list[Preference]) -> None:
        """Replace the preference filter; scheduling-only preferences are ignored."""
        self.preferences = frozenset(p for p in preferences if p not in NON_SEARCH_PREFERENCES)

    def _matches(self, entry: CatalogEntry) -> bool:
        return not self.preferences or bool(entry.tags & self.preferences)

    async def activities_near(
        self,
        coordinate: Coordinate,
        radius_m: int,
        limit: int,
        exclude_names: list[str],
        cached_pool: list[Activity],
    ) -> list[Activity]:
        """Nearest matching activities; surplus matches go to ``cached_pool``."""
        if limit <= 0:
            return []

        excluded = set(exclude_names)
        hits = []
        for entry in self.catalog:
            activity = entry.activity
            if activity.name in excluded or not self._matches(entry):
                continue
            distance_km = haversine_km(
                coordinate.latitude,
                coordinate.longitude,
                activity.location.coordinate.latitude,
                activity.location.coordinate.longitude,
            )
            if distance_km * 1000 <= radius_m:
                hits.append((distance_km, activity))

        hits.sort(key=lambda hit: hit[0])
        selected = [activity for _, activity in hits[:limit]]

        for _, activity in hits[limit:]:
            if not contains_match(cached_pool, activity):
                cached_pool.append(activity)

        return selected

    async def select_activities(
        self,
        cached_pool: list[Activity],
        blacklist: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[Activity]:
        """Pick activities around each destination."""
        selected: list[Activity] = []
        for i, destination in enumerate(self.destinations, start=1):
            found = await self.activities_near(
                destination.coordinate,
                self.radius_m,
                self.per_destination,
                list(blacklist) + [a.name for a in selected],
                cached_pool,
            )
            selected.extend(found)
            if on_progress is not None:
                on_progress(i / len(self.destinations))

        # Surplus of a later destination may be selected by an earlier one
        for activity in selected:
            while remove_match(cached_pool, activity):
                pass

        logger.info(
            f"Selected {len(selected)} activities for {len(self.destinations)} destinations",
            extra={"cached": len(cached_pool)},
        )
        return selected

"""Collaborator interfaces consumed by the trip engine."""

from collections.abc import Callable
from typing import Protocol

from tripfill.app.models.activity import Activity
from tripfill.app.models.common import Coordinate, Location, Preference, TransportMode
from tripfill.app.models.route import OrderedRoute
from tripfill.app.models.trip import TripActivity, TripProfile, TripSegment

ProgressCallback = Callable[[float], None]


class ActivitySelector(Protocol):
    """Finds real activities matching the current preference filter."""

    async def select_activities(
        self,
        cached_pool: list[Activity],
        blacklist: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[Activity]:
        """Initial selection for the whole trip.

        Args:
            cached_pool: Pool that receives matches beyond what is returned.
            blacklist: Activity names that must not be returned.
            on_progress: Fractional progress callback (0..1).

        Returns:
            Activities to put in the trip.
        """
        ...

    async def activities_near(
        self,
        coordinate: Coordinate,
        radius_m: int,
        limit: int,
        exclude_names: list[str],
        cached_pool: list[Activity],
    ) -> list[Activity]:
        """Up to ``limit`` activities within ``radius_m`` of ``coordinate``.

        Names in ``exclude_names`` are never returned. Surplus matches may be
        appended to ``cached_pool``.
        """
        ...

    def update_preferences(self, preferences: list[Preference]) -> None:
        """Replace the preference filter used by subsequent calls."""
        ...


class RouteOptimizer(Protocol):
    """Orders locations and computes travel times between them."""

    async def optimize(
        self,
        start: Location,
        end: Location,
        all_locations: list[Location],
        activities: list[Activity],
        mode: TransportMode,
        on_progress: ProgressCallback | None = None,
    ) -> OrderedRoute:
        """Full optimization from ``start`` to ``end`` through ``all_locations``."""
        ...

    async def recompute_ordered_route(
        self,
        route: OrderedRoute,
        invalidated_indices: list[int],
        mode: TransportMode,
        on_progress: ProgressCallback | None = None,
    ) -> OrderedRoute:
        """Recompute listed or pending segments only; order is preserved."""
        ...


class Scheduler(Protocol):
    """Assigns concrete timestamps to route legs and activities."""

    def schedule_trip(
        self,
        profile: TripProfile,
        route: OrderedRoute,
        activities: list[Activity],
        on_progress: ProgressCallback | None = None,
    ) -> list[TripActivity | TripSegment]:
        ...

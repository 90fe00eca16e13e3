"""Haversine-based route optimizer.

Orders stops greedily by nearest neighbour and estimates leg durations from
great-circle distance, a road detour factor and a per-mode average speed.
Deterministic and offline; suitable for tests and as a fallback when no
routing service is available.
"""

import logging
from collections.abc import Callable

from tripfill.app.models.activity import Activity
from tripfill.app.models.common import Location, TransportMode
from tripfill.app.models.route import KnownDuration, OrderedRoute, PendingDuration

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Average door-to-door speeds in km/h
MODE_SPEEDS_KMH = {
    TransportMode.car: 70.0,
    TransportMode.train: 90.0,
}


class HaversineRouteOptimizer:
    """Reference route optimizer."""

    def __init__(
        self,
        road_factor: float = 1.3,
        base_leg_seconds: int = 300,
        speeds_kmh: dict[TransportMode, float] | None = None,
    ) -> None:
        self.road_factor = road_factor
        self.base_leg_seconds = base_leg_seconds
        self.speeds_kmh = speeds_kmh or dict(MODE_SPEEDS_KMH)

    def leg_seconds(self, origin: Location, destination: Location, mode: TransportMode) -> float:
        """Estimated travel time between two locations."""
        distance_km = origin.haversine_distance_to(destination)
        if distance_km <= 0:
            return 0.0
        speed = self.speeds_kmh.get(mode, MODE_SPEEDS_KMH[TransportMode.car])
        return round(self.base_leg_seconds + distance_km * self.road_factor / speed * 3600)

    async def optimize(
        self,
        start: Location,
        end: Location,
        all_locations: list[Location],
        activities: list[Activity],
        mode: TransportMode,
        on_progress: ProgressCallback | None = None,
    ) -> OrderedRoute:
        """Nearest-neighbour tour from ``start`` through every stop to ``end``."""
        stops: list[Location] = []
        for location in all_locations + [a.location for a in activities]:
            if location.same_location(start) or location.same_location(end):
                continue
            if any(location.same_location(seen) for seen in stops):
                continue
            stops.append(location)

        ordered = [start]
        remaining = list(stops)
        total = len(remaining)
        while remaining:
            current = ordered[-1]
            nearest = min(remaining, key=current.haversine_distance_to)
            remaining.remove(nearest)
            ordered.append(nearest)
            if on_progress is not None and total:
                on_progress((total - len(remaining)) / total)
        ordered.append(end)

        durations = [
            KnownDuration(seconds=self.leg_seconds(a, b, mode))
            for a, b in zip(ordered, ordered[1:])
        ]
        if on_progress is not None:
            on_progress(1.0)

        return OrderedRoute(
            ordered_locations=ordered,
            segment_durations=durations,
            total_duration=sum(d.seconds for d in durations),
        )

    async def recompute_ordered_route(
        self,
        route: OrderedRoute,
        invalidated_indices: list[int],
        mode: TransportMode,
        on_progress: ProgressCallback | None = None,
    ) -> OrderedRoute:
        """Recompute listed and pending legs, keeping the order."""
        locations = route.ordered_locations
        targets = set(invalidated_indices) | set(route.invalidated_indices())
        targets = {i for i in targets if 0 <= i < len(route.segment_durations)}

        durations = []
        for i, duration in enumerate(route.segment_durations):
            if i in targets or isinstance(duration, PendingDuration):
                durations.append(
                    KnownDuration(seconds=self.leg_seconds(locations[i], locations[i + 1], mode))
                )
            else:
                durations.append(duration)

        logger.debug(f"Recomputed {len(targets)} route segments")
        if on_progress is not None:
            on_progress(1.0)

        return OrderedRoute(
            ordered_locations=list(locations),
            segment_durations=durations,
            total_duration=sum(d.seconds for d in durations),
        )

"""Per-run planning state.

A ``PlanningSession`` exclusively owns the mutable state of one trip
computation: the enhanced profile, the trip's activity list and the cached
pool. It is created once per run and handed by reference through the
refinement steps; it must never be shared between runs.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from tripfill.app.config import Settings
from tripfill.app.models.activity import Activity, contains_match, remove_match
from tripfill.app.models.city import CityConfig
from tripfill.app.models.common import Location, TransportMode, transport_mode_for
from tripfill.app.models.route import OrderedRoute
from tripfill.app.models.trip import (
    EnhancedTripProfile,
    TripActivity,
    TripProfile,
    TripSegment,
    schedule_end,
)

from .types import ActivitySelector, ProgressCallback, RouteOptimizer, Scheduler

if TYPE_CHECKING:
    from tripfill.app.metrics.registry import MetricsClient

Schedule = list[TripActivity | TripSegment]


@dataclass
class ActivitySelectionParameters:
    """Caller-supplied inputs that survive across runs.

    ``cached_activities`` is mutated in place: pulled activities leave it and
    pruned ones come back.
    """

    cached_activities: list[Activity] = field(default_factory=list)
    protected_activities: list[Activity] = field(default_factory=list)
    activity_blacklist: list[str] = field(default_factory=list)
    all_fetched_locations: list[Location] = field(default_factory=list)


@dataclass
class TripActivities:
    """The trip's activities and the pool of fetched-but-unused ones.

    ``all_activities`` and ``cached_activities`` are disjoint.
    """

    all_activities: list[Activity] = field(default_factory=list)
    intermediate_activities: list[Activity] = field(default_factory=list)
    grand_tour_activities: list[Activity] = field(default_factory=list)
    cached_activities: list[Activity] = field(default_factory=list)

    def adopt(self, activities: Sequence[Activity]) -> int:
        """Move ``activities`` into the trip, dropping them from the cache."""
        for activity in activities:
            remove_match(self.cached_activities, activity)
            self.all_activities.append(activity)
        return len(activities)

    def release(self, activities: Sequence[Activity]) -> None:
        """Move ``activities`` out of the trip and back into the cache."""
        for activity in activities:
            remove_match(self.all_activities, activity)
            remove_match(self.intermediate_activities, activity)
            self.cached_activities.append(activity)

    def names(self) -> list[str]:
        return [activity.name for activity in self.all_activities]

    def is_intermediate(self, activity: Activity) -> bool:
        return contains_match(self.intermediate_activities, activity)

    def is_grand_tour(self, activity: Activity) -> bool:
        return contains_match(self.grand_tour_activities, activity)


@dataclass
class PlanningSession:
    """Everything one trip computation reads and mutates."""

    profile: EnhancedTripProfile
    activities: TripActivities
    params: ActivitySelectionParameters
    selector: ActivitySelector
    optimizer: RouteOptimizer
    scheduler: Scheduler
    catalog: Sequence[CityConfig]
    settings: Settings
    rng: random.Random
    metrics: MetricsClient | None = None
    # Cities discovery chose but that yielded nothing this run
    probed_locations: list[Location] = field(default_factory=list)

    @property
    def trip_profile(self) -> TripProfile:
        return self.profile.trip_profile

    @property
    def target_end(self) -> datetime:
        return self.trip_profile.end_date

    @property
    def transport_mode(self) -> TransportMode:
        return transport_mode_for(self.trip_profile.preferences)

    @property
    def start_location(self) -> Location:
        # Presence is checked when the session is built
        return self.trip_profile.arrival_location  # type: ignore[return-value]

    @property
    def end_location(self) -> Location:
        return self.trip_profile.departure_location  # type: ignore[return-value]

    def excluded_names(self) -> list[str]:
        """Names a fetch must not return: activities in the trip plus the blacklist."""
        return self.activities.names() + list(self.params.activity_blacklist)

    def route_locations(self) -> list[Location]:
        """Union of preferred locations and activity locations, first occurrence kept."""
        locations: list[Location] = []
        for location in self.profile.new_preferred_locations + [
            activity.location for activity in self.activities.all_activities
        ]:
            if not any(location.same_location(seen) for seen in locations):
                locations.append(location)
        return locations

    def schedule_end(self, schedule: Schedule) -> datetime:
        return schedule_end(schedule, self.trip_profile.start_date)

    async def optimize_route(
        self, on_progress: ProgressCallback | None = None
    ) -> OrderedRoute:
        """Full route optimization over the current trip state."""
        return await self.optimizer.optimize(
            self.start_location,
            self.end_location,
            self.route_locations(),
            list(self.activities.all_activities),
            self.transport_mode,
            on_progress,
        )

    def schedule(self, route: OrderedRoute) -> Schedule:
        """Schedule the current activity list along ``route``."""
        return self.scheduler.schedule_trip(
            self.trip_profile, route, list(self.activities.all_activities)
        )

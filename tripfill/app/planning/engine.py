"""Trip engine: computes and completes a multi-day itinerary.

Phases:
1. Select activities, optimize the route and optionally insert stops.
2. Schedule, pruning whatever the scheduler could not place or what runs
   past the target date.
3. Refine an under-filled schedule (cached pull, city filler, broadened
   fetch, new cities) or prune an over-filled one.
4. Optimize the final activity set and schedule it once more.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from tripfill.app.catalog.cities import load_city_catalog
from tripfill.app.config import Settings, get_settings
from tripfill.app.models.city import CityConfig
from tripfill.app.models.common import Preference
from tripfill.app.models.route import OrderedRoute, known
from tripfill.app.models.trip import EnhancedTripProfile, TripProfile, TripSettings
from tripfill.app.scheduling.scheduler import TripScheduler
from tripfill.app.utils.dates import date_difference

from .acquirers import grand_tour_activity
from .errors import ActivitySelectionError, MissingEndpointError, RouteOptimizationError
from .preferences import normalize_trip_settings
from .progress import ComputeProgression, FinalSchedulingProgression, ProgressReporter
from .pruning import schedule_remove
from .refinement import complete_schedule
from .reschedule import optimize_and_schedule
from .session import ActivitySelectionParameters, PlanningSession, Schedule, TripActivities
from .stops import add_in_between_activities
from .types import ActivitySelector, ProgressCallback, RouteOptimizer, Scheduler

if TYPE_CHECKING:
    from tripfill.app.metrics.registry import MetricsClient

logger = logging.getLogger(__name__)

# Below this distance (km) arrival and departure count as the same place
SAME_PLACE_KM = 1.0


class TripEngine:
    """Computes trips against injected selector, optimizer and scheduler."""

    def __init__(
        self,
        selector: ActivitySelector,
        optimizer: RouteOptimizer,
        scheduler: Scheduler | None = None,
        catalog: Sequence[CityConfig] | None = None,
        settings: Settings | None = None,
        metrics: MetricsClient | None = None,
        rng_seed: int | None = None,
        progression: ComputeProgression | None = None,
        final_progression: FinalSchedulingProgression | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.selector = selector
        self.optimizer = optimizer
        self.scheduler = scheduler or TripScheduler(timezone=self.settings.trip_timezone)
        self.catalog = catalog if catalog is not None else load_city_catalog()
        self.metrics = metrics
        self.rng_seed = rng_seed if rng_seed is not None else self.settings.engine_rng_seed
        self.progression = progression or ComputeProgression()
        self.final_progression = final_progression or FinalSchedulingProgression()
        self.trip_settings: TripSettings | None = None

    @classmethod
    def init(
        cls,
        trip_settings: TripSettings,
        selector_factory: Callable[[TripSettings], ActivitySelector],
        optimizer: RouteOptimizer,
        **kwargs,
    ) -> TripEngine:
        """Build an engine for ``trip_settings``.

        Preferences are normalized from the traveler counts first; the
        selector is created from the normalized settings.
        """
        normalized = normalize_trip_settings(trip_settings)
        engine = cls(selector_factory(normalized), optimizer, **kwargs)
        engine.trip_settings = normalized
        return engine

    def _new_session(
        self,
        trip_settings: TripSettings,
        trip_profile: TripProfile,
        is_random_trip: bool,
        params: ActivitySelectionParameters,
    ) -> PlanningSession:
        arrival = trip_settings.arrival_departure.arrival_location
        departure = trip_settings.arrival_departure.departure_location
        if arrival is None:
            raise MissingEndpointError("Arrival location must not be None")
        if departure is None:
            raise MissingEndpointError("Departure location must not be None")

        profile = trip_profile.model_copy(
            update={
                "preferences": list(trip_settings.preferences),
                "arrival_location": arrival,
                "departure_location": departure,
            }
        )
        enhanced = EnhancedTripProfile.for_profile(profile)

        grand_tour = []
        if is_random_trip:
            grand_tour = [
                grand_tour_activity(location, self.settings.grand_tour_activity_duration_s)
                for location in profile.preferred_locations[1:]
            ]

        activities = TripActivities(
            all_activities=grand_tour + list(params.protected_activities),
            grand_tour_activities=list(grand_tour),
            cached_activities=params.cached_activities,
        )
        return PlanningSession(
            profile=enhanced,
            activities=activities,
            params=params,
            selector=self.selector,
            optimizer=self.optimizer,
            scheduler=self.scheduler,
            catalog=self.catalog,
            settings=self.settings,
            rng=random.Random(self.rng_seed),
            metrics=self.metrics,
        )

    async def compute_initial_route(
        self, session: PlanningSession, progress: ProgressReporter
    ) -> OrderedRoute:
        """Select activities, optimize the route and insert in-between stops.

        Raises:
            ActivitySelectionError: If the selector fails.
            RouteOptimizationError: If optimization fails or yields a route
                with no duration.
        """
        weights = self.progression
        start = session.start_location
        end = session.end_location
        progress(0.0)

        try:
            selected = await session.selector.select_activities(
                session.activities.cached_activities,
                list(session.params.activity_blacklist),
                progress.scaled(0.0, weights.select_activities),
            )
        except Exception as e:
            raise ActivitySelectionError(f"Failed to select activities: {e}") from e
        session.activities.adopt(selected)
        progress(weights.select_activities)

        if start.haversine_distance_to(end) >= SAME_PLACE_KM or session.activities.all_activities:
            try:
                route = await session.optimize_route(
                    progress.scaled(weights.select_activities, weights.optimize_route)
                )
            except Exception as e:
                raise RouteOptimizationError(f"Route optimization failed: {e}") from e
        else:
            route = OrderedRoute(
                ordered_locations=[start, end],
                segment_durations=[known(1.0)],
                total_duration=1.0,
            )
        progress(weights.select_activities + weights.optimize_route)

        if route.total_duration <= 0:
            raise RouteOptimizationError("Optimized route duration is zero or negative")

        if Preference.intermediate_stops in session.trip_profile.preferences:
            route = await add_in_between_activities(
                session,
                route,
                progress.scaled(
                    weights.select_activities + weights.optimize_route,
                    weights.fetch_in_between,
                ),
            )

        return route

    async def compute_trip(
        self,
        trip_settings: TripSettings | None = None,
        trip_profile: TripProfile | None = None,
        is_random_trip: bool = False,
        selection_params: ActivitySelectionParameters | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Schedule:
        """Compute a complete itinerary.

        Args:
            trip_settings: User trip settings; defaults to the settings given
                to ``init``
            trip_profile: Planning profile; derived from the settings if omitted
            is_random_trip: Add a short stop at every preferred location but
                the first
            selection_params: Cached pool, protected activities, blacklist
                and already-fetched locations carried over from earlier runs
            on_progress: Receives monotonically non-decreasing progress in 0..1

        Returns:
            The scheduled trip elements, ordered by start time
        """
        if trip_settings is None:
            if self.trip_settings is None:
                raise ValueError("trip_settings is required when the engine was not built with init()")
            trip_settings = self.trip_settings
        if trip_profile is None:
            trip_profile = TripProfile.from_settings(trip_settings)

        params = selection_params or ActivitySelectionParameters()
        progress = ProgressReporter(on_progress)
        weights = self.progression
        session = self._new_session(trip_settings, trip_profile, is_random_trip, params)

        try:
            route = await self.compute_initial_route(session, progress)

            base = (
                weights.select_activities + weights.optimize_route + weights.fetch_in_between
            )
            progress(base)

            schedule = await schedule_remove(session, route)
            base += weights.schedule_trip
            progress(base)

            loop_budget = weights.final_scheduling * self.final_progression.loop_filling
            final_budget = weights.final_scheduling * self.final_progression.final_optimization

            gap = date_difference(session.schedule_end(schedule), session.target_end)
            if gap > 0:
                schedule = await complete_schedule(
                    session, schedule, progress.scaled(base, loop_budget)
                )
            elif gap < 0:
                schedule = await optimize_and_schedule(session)

            base += loop_budget
            progress(base)

            try:
                final_route = await session.optimize_route(progress.scaled(base, final_budget))
            except Exception as e:
                logger.warning(
                    "Final route optimization failed, keeping the previous route",
                    extra={"error": str(e)},
                )
                final_route = route

            schedule = await schedule_remove(session, final_route)
        except Exception:
            logger.exception("Trip computation failed")
            raise

        progress(1.0)
        logger.info(
            f"Computed trip with {len(session.activities.all_activities)} activities",
            extra={
                "elements": len(schedule),
                "cities_added": len(session.profile.new_preferred_locations)
                - len(session.trip_profile.preferred_locations),
            },
        )
        return schedule

"""Schedule-and-prune.

Schedules the trip and, when the result runs past the target date, moves
activities back to the cached pool until the overrun is covered. Activities
the scheduler could not place are always moved back first.
"""

import logging
import random
from collections.abc import Sequence

from tripfill.app.models.activity import Activity, contains_match
from tripfill.app.models.common import Location
from tripfill.app.models.route import PENDING, OrderedRoute
from tripfill.app.models.trip import TripActivity, scheduled_activities
from tripfill.app.utils.dates import date_difference

from .session import PlanningSession, Schedule

logger = logging.getLogger(__name__)


def build_route_after_removals(
    route: OrderedRoute, locations: Sequence[Location]
) -> OrderedRoute:
    """Drop ``locations`` from ``route`` and mark the merged legs pending.

    Only the first interior occurrence of each location is removed; the
    route's start and end are never touched. The two legs around a removed
    stop collapse into one pending leg.
    """
    ordered = list(route.ordered_locations)
    durations = list(route.segment_durations)

    for location in locations:
        idx = next(
            (
                i
                for i in range(1, len(ordered) - 1)
                if ordered[i].same_location(location)
            ),
            -1,
        )
        if idx == -1:
            continue

        durations[idx - 1] = PENDING
        del durations[idx]
        del ordered[idx]

    return OrderedRoute(
        ordered_locations=ordered,
        segment_durations=durations,
        total_duration=route.total_duration,
    )


def _best_candidate(pool: list[Activity], deficit: float) -> Activity | None:
    """Smallest activity covering ``deficit``, else the largest one below it."""
    if not pool:
        return None

    covering = [a for a in pool if a.estimated_time >= deficit]
    if covering:
        return min(covering, key=lambda a: a.estimated_time - deficit)
    return max(pool, key=lambda a: a.estimated_time)


def select_activities_to_remove(
    candidates: Sequence[Activity],
    preferred_locations: Sequence[Location],
    intermediate_activities: Sequence[Activity],
    deficit_seconds: float,
    protected_activities: Sequence[Activity],
    rng: random.Random,
) -> list[Activity]:
    """Pick activities whose removal covers ``deficit_seconds``.

    Candidates are drawn in three tiers, moving to the next tier only when
    the previous one is empty:

    1. standard activities
    2. soft-protected: the only activity clustered around its nearest
       preferred location, and intermediate stops
    3. caller-protected activities

    Args:
        candidates: Removable activities currently in the schedule
        preferred_locations: Cluster centers
        intermediate_activities: In-between stops
        deficit_seconds: Time to free up
        protected_activities: Activities the caller asked to keep
        rng: Session random source for tie order

    Returns:
        Activities to remove, in removal order
    """
    pool = list(candidates)
    rng.shuffle(pool)

    clusters: list[list[Activity]] = [[] for _ in preferred_locations]
    if clusters:
        for activity in pool:
            nearest = min(
                range(len(preferred_locations)),
                key=lambda i: activity.location.coordinate.haversine_distance_to(
                    preferred_locations[i].coordinate
                ),
            )
            clusters[nearest].append(activity)

    soft_protected = [a for cluster in clusters if len(cluster) <= 1 for a in cluster]
    soft_protected.extend(intermediate_activities)

    to_remove: list[Activity] = []
    remaining = deficit_seconds

    while remaining > 0 and pool:
        standard = [
            a
            for a in pool
            if not contains_match(soft_protected, a)
            and not contains_match(protected_activities, a)
        ]
        chosen = _best_candidate(standard, remaining)

        if chosen is None:
            soft = [
                a
                for a in pool
                if contains_match(soft_protected, a)
                and not contains_match(protected_activities, a)
            ]
            chosen = _best_candidate(soft, remaining)

        if chosen is None:
            protected = [a for a in pool if contains_match(protected_activities, a)]
            chosen = _best_candidate(protected, remaining)

        if chosen is None:
            break

        to_remove.append(chosen)
        remaining -= chosen.estimated_time
        pool.remove(chosen)

    return to_remove


def _orphaned_locations(
    session: PlanningSession, removed: Sequence[Activity]
) -> list[Location]:
    """Locations of ``removed`` that no remaining activity or preferred location uses."""
    keep = [a.location for a in session.activities.all_activities]
    keep.extend(session.profile.new_preferred_locations)

    locations: list[Location] = []
    for activity in removed:
        location = activity.location
        if any(location.same_location(k) for k in keep):
            continue
        if not any(location.same_location(seen) for seen in locations):
            locations.append(location)
    return locations


async def schedule_remove(session: PlanningSession, route: OrderedRoute) -> Schedule:
    """Schedule the trip along ``route`` and prune it if it overruns.

    Returns:
        The final schedule. If an incremental recompute fails the last good
        schedule is returned and the failure is logged.
    """
    settings = session.settings
    activities = session.activities
    removable = [
        a
        for a in activities.all_activities
        if not activities.is_intermediate(a) and not activities.is_grand_tour(a)
    ]

    current_route = route
    schedule = session.schedule(current_route)
    scheduled = scheduled_activities(schedule)

    # Activities the scheduler could not place
    ghosts = [a for a in activities.all_activities if not contains_match(scheduled, a)]
    if ghosts:
        activities.release(ghosts)
        if session.metrics is not None:
            session.metrics.inc_activities_pruned("unscheduled", len(ghosts))

        cleaned = build_route_after_removals(
            current_route, _orphaned_locations(session, ghosts)
        )
        try:
            current_route = await session.optimizer.recompute_ordered_route(
                cleaned, cleaned.invalidated_indices(), session.transport_mode
            )
            schedule = session.schedule(current_route)
            scheduled = scheduled_activities(schedule)
        except Exception as e:
            logger.warning(
                "Recompute after removing unscheduled activities failed",
                extra={"error": str(e), "ghosts": len(ghosts)},
            )
            return schedule

    end = session.schedule_end(schedule)
    if date_difference(end, session.target_end) >= 0:
        return schedule

    overrun = sum(
        element.activity.estimated_time
        for element in schedule
        if isinstance(element, TripActivity)
        and date_difference(element.end_date, session.target_end) < 0
    )
    deficit = overrun + len(ghosts) * settings.reschedule_penalty_per_activity_s
    # Travel alone can spill past the target date
    deficit = max(deficit, settings.reschedule_penalty_per_activity_s)

    candidates = [a for a in removable if contains_match(scheduled, a)]
    to_remove = select_activities_to_remove(
        candidates,
        session.profile.new_preferred_locations,
        activities.intermediate_activities,
        deficit,
        session.params.protected_activities,
        session.rng,
    )
    if not to_remove:
        return schedule

    activities.release(to_remove)
    if session.metrics is not None:
        session.metrics.inc_activities_pruned("overrun", len(to_remove))
    logger.info(
        f"Pruned {len(to_remove)} activities to cover {deficit:.0f}s overrun",
        extra={"deficit_s": deficit},
    )

    trimmed = build_route_after_removals(
        current_route, _orphaned_locations(session, to_remove)
    )
    try:
        final_route = await session.optimizer.recompute_ordered_route(
            trimmed, trimmed.invalidated_indices(), session.transport_mode
        )
        return session.schedule(final_route)
    except Exception as e:
        logger.warning(
            "Recompute after pruning failed",
            extra={"error": str(e), "pruned": len(to_remove)},
        )
        return schedule

"""In-between stop insertion along long route segments."""

import logging

from tripfill.app.models.activity import Activity, contains_match, remove_match
from tripfill.app.models.common import Coordinate, Location
from tripfill.app.models.route import PENDING, OrderedRoute

from .session import PlanningSession
from .types import ProgressCallback

logger = logging.getLogger(__name__)


def stops_for_segment(start: Location, end: Location, distance_per_stop_km: float) -> int:
    """One stop per ``distance_per_stop_km`` of great-circle distance."""
    if distance_per_stop_km <= 0:
        return 0
    return int(start.haversine_distance_to(end) / distance_per_stop_km)


async def generate_activities_between(
    session: PlanningSession,
    start: Location,
    end: Location,
    count: int,
    exclude_names: list[str],
) -> list[Activity]:
    """Find up to ``count`` real activities spread between ``start`` and ``end``.

    Stop points are evenly spaced on the straight lat/lon line between the
    endpoints, each nudged by a small random offset. Hits taken from the
    cached pool are removed from it.
    """
    if count <= 0:
        return []

    settings = session.settings
    offset = settings.stop_offset_deg
    lat_step = (end.coordinate.latitude - start.coordinate.latitude) / (count + 1)
    lon_step = (end.coordinate.longitude - start.coordinate.longitude) / (count + 1)

    found: list[Activity] = []
    for i in range(1, count + 1):
        base_lat = start.coordinate.latitude + lat_step * i
        base_lon = start.coordinate.longitude + lon_step * i
        point = Coordinate(
            latitude=base_lat + session.rng.uniform(-offset, offset),
            longitude=base_lon + session.rng.uniform(-offset, offset),
        )
        hits = await session.selector.activities_near(
            point,
            settings.radius_new_activity_m,
            1,
            exclude_names + [a.name for a in found],
            session.activities.cached_activities,
        )
        if not hits:
            continue

        activity = hits[0]
        if contains_match(found, activity):
            continue
        found.append(activity)
        remove_match(session.activities.cached_activities, activity)

    return found


async def add_in_between_activities(
    session: PlanningSession,
    route: OrderedRoute,
    on_progress: ProgressCallback | None = None,
) -> OrderedRoute:
    """Insert stop activities along segments longer than the stop distance.

    Only the first few segments that need stops are touched, each getting a
    bounded number of stops. Each stop is spliced in right after its
    segment's start; the legs around it become pending and are filled by the
    optimizer's incremental recompute.

    Returns:
        The recomputed route, or ``route`` itself when nothing was inserted
    """
    settings = session.settings
    locations = route.ordered_locations

    segments = []
    for index in range(len(locations) - 1):
        count = stops_for_segment(
            locations[index], locations[index + 1], settings.distance_per_stop_km
        )
        if count > 0:
            segments.append((index, min(count, settings.max_inbetween_per_segment)))
    segments = segments[: settings.max_inbetween_segments]

    if not segments:
        return route

    exclude = session.excluded_names()
    new_locations = list(locations)
    new_durations = list(route.segment_durations)
    shift = 0
    inserted: list[Activity] = []

    for done, (index, count) in enumerate(segments, start=1):
        stops = await generate_activities_between(
            session,
            locations[index],
            locations[index + 1],
            count,
            exclude + [a.name for a in inserted],
        )

        start_index = index + shift
        for i, activity in enumerate(stops, start=1):
            insert_at = start_index + i
            new_locations.insert(insert_at, activity.location)
            new_durations[insert_at - 1] = PENDING
            new_durations.insert(insert_at, PENDING)
        shift += len(stops)
        inserted.extend(stops)

        if on_progress is not None:
            on_progress(0.5 * done / len(segments))

    if not inserted:
        return route

    session.activities.adopt(inserted)
    session.activities.intermediate_activities.extend(inserted)
    if session.metrics is not None:
        session.metrics.inc_stops_inserted(len(inserted))
    logger.info(
        f"Inserted {len(inserted)} in-between stops",
        extra={"segments": len(segments)},
    )

    spliced = OrderedRoute(
        ordered_locations=new_locations,
        segment_durations=new_durations,
        total_duration=route.total_duration,
    )

    def report(fraction: float) -> None:
        if on_progress is not None:
            on_progress(0.5 + 0.5 * fraction)

    return await session.optimizer.recompute_ordered_route(
        spliced, spliced.invalidated_indices(), session.transport_mode, report
    )

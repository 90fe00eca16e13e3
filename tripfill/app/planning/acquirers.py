"""Strategies that add time-bounded content to a trip.

Each strategy returns whether it mutated the trip. None of them re-derive
the itinerary; callers reschedule after a success.
"""

import logging
from collections.abc import Sequence

from tripfill.app.models.activity import Activity, contains_match
from tripfill.app.models.city import CityConfig
from tripfill.app.models.common import Location, all_basic_preferences

from .city_discovery import candidate_cities, choose_next_city
from .knapsack import activity_minutes, solve_time_knapsack
from .session import PlanningSession

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


def city_activity(location: Location, estimated_time: int) -> Activity:
    """Generic "visit the city" filler activity."""
    return Activity(
        location=location.model_copy(update={"name": f"City visit: {location.name}"}),
        estimated_time=estimated_time,
        description=f"Free time to explore {location.name} at your own pace.",
    )


def grand_tour_activity(location: Location, estimated_time: int) -> Activity:
    """Short stop at a location of a randomly generated tour."""
    return Activity(
        location=location.model_copy(update={"name": f"Grand tour stop: {location.name}"}),
        estimated_time=estimated_time,
        description=f"A short stop to take in {location.name}.",
    )


def match_city(location: Location, catalog: Sequence[CityConfig]) -> CityConfig | None:
    """First catalog city whose radius covers ``location``."""
    for city in catalog:
        if location.haversine_distance_to(city.location) <= city.radius_km:
            return city
    return None


def _fresh(found: Sequence[Activity], session: PlanningSession) -> list[Activity]:
    """Drop results already in the trip or repeated within ``found``."""
    fresh: list[Activity] = []
    for activity in found:
        if contains_match(session.activities.all_activities, activity):
            continue
        if contains_match(fresh, activity):
            continue
        fresh.append(activity)
    return fresh


def cached_candidates(session: PlanningSession, limit_minutes: int) -> list[Activity]:
    """Cached activities the packer may choose from.

    Cached activities farther than the cached-activity radius from every
    preferred location are dropped from the pool. The rest qualify when
    their location is not yet in the trip and their duration fits the
    budget on its own.
    """
    radius = session.settings.radius_cached_activities_km
    preferred = session.profile.new_preferred_locations
    pool = session.activities.cached_activities
    trip_locations = [a.location for a in session.activities.all_activities]

    candidates = []
    kept = []
    for activity in pool:
        near = any(
            activity.location.haversine_distance_to(location) <= radius
            for location in preferred
        )
        if not near:
            continue
        kept.append(activity)

        in_trip = any(activity.location.same_location(loc) for loc in trip_locations)
        minutes = activity_minutes(activity)
        if not in_trip and 0 < minutes <= limit_minutes:
            candidates.append(activity)

    # Keep the caller's list object; it is shared with the selection parameters
    pool[:] = kept
    return candidates


def add_cached_activity(session: PlanningSession, hours_needed: float) -> bool:
    """Pack cached activities into ``hours_needed`` using the knapsack solver."""
    if not session.activities.cached_activities:
        return False

    cap_hours = session.settings.knapsack_cap_hours
    limit_minutes = int(min(cap_hours, hours_needed) * 60)
    if limit_minutes <= 0:
        return False

    candidates = cached_candidates(session, limit_minutes)
    if not candidates:
        return False

    chosen = solve_time_knapsack(candidates, limit_minutes, cap_minutes=cap_hours * 60)
    if not chosen:
        return False

    session.activities.adopt(chosen)
    logger.debug(
        f"Pulled {len(chosen)} cached activities",
        extra={"limit_minutes": limit_minutes},
    )
    return True


def add_city_activity(session: PlanningSession, seconds_needed: int) -> bool:
    """Add one generic city-visit filler activity.

    Preferred locations are tried in shuffled order. The first one inside a
    catalog city with no visit yet is used, unless its name is blacklisted.
    Otherwise the first candidate still under the city's capacity is used,
    and failing that the first one over capacity. Blacklisted visits only
    take part in these fallbacks.
    """
    settings = session.settings
    blacklist = session.params.activity_blacklist
    shuffled = list(session.profile.new_preferred_locations)
    session.rng.shuffle(shuffled)

    under_capacity: list[Activity] = []
    over_capacity: list[Activity] = []

    for location in shuffled:
        city = match_city(location, session.catalog)
        if city is None:
            continue

        day_seconds = settings.activity_hours_per_day * SECONDS_PER_HOUR
        if city.capacity < 1:
            cap_seconds = int(day_seconds * city.capacity)
        else:
            cap_seconds = day_seconds
        visit = city_activity(city.location, min(cap_seconds, int(seconds_needed)))
        if visit.estimated_time <= 0:
            continue

        existing = sum(
            1
            for activity in session.activities.all_activities
            if activity.location.same_location(visit.location)
        )
        if existing == 0 and visit.name not in blacklist:
            session.activities.adopt([visit])
            return True

        if existing < int(city.capacity):
            under_capacity.append(visit)
        else:
            over_capacity.append(visit)

    fallback = under_capacity or over_capacity
    if fallback:
        if not under_capacity:
            logger.info(
                f"Every matching city is at capacity, adding another visit to {fallback[0].name}",
            )
        session.activities.adopt([fallback[0]])
        return True

    return False


def associated_cities(session: PlanningSession) -> list[CityConfig]:
    """Catalog cities near a preferred location, biggest first."""
    radius = session.settings.radius_city_association_km
    cities: list[CityConfig] = []
    for location in session.profile.new_preferred_locations:
        city = next(
            (
                c
                for c in session.catalog
                if location.haversine_distance_to(c.location) <= radius
            ),
            None,
        )
        if city is not None and city not in cities:
            cities.append(city)
    return sorted(cities, key=lambda c: c.capacity, reverse=True)


async def fetch_activities_for_existing_cities(session: PlanningSession) -> bool:
    """Fetch real activities near known cities under the broadened filter.

    The selector's preference filter is widened for the duration of the call
    and always restored to the trip's preferences afterwards.
    """
    settings = session.settings
    selector = session.selector
    added = 0

    selector.update_preferences(all_basic_preferences())
    try:
        for city in associated_cities(session)[: settings.max_existing_city_fetches]:
            found = await selector.activities_near(
                city.location.coordinate,
                settings.radius_new_activity_m,
                settings.activities_per_new_city,
                session.excluded_names(),
                session.activities.cached_activities,
            )
            fresh = _fresh(found, session)
            if fresh:
                added += session.activities.adopt(fresh)
    finally:
        selector.update_preferences(list(session.trip_profile.preferences))

    return added > 0


async def add_city(session: PlanningSession) -> bool:
    """Discover a new city and fetch activities for it.

    On any yield the city's location joins the preferred-location working
    set. A city that yields nothing is remembered and skipped by later
    discovery calls of this run.
    """
    settings = session.settings
    selector = session.selector
    fetched = list(session.params.all_fetched_locations) + session.probed_locations

    candidates = candidate_cities(
        session.catalog, session.profile.new_preferred_locations, fetched
    )
    if not candidates:
        return False
    city = choose_next_city(candidates, settings.city_slack_km)

    wanted = settings.activities_per_new_city
    found = _fresh(
        await selector.activities_near(
            city.location.coordinate,
            settings.radius_new_activity_m,
            wanted,
            session.excluded_names(),
            session.activities.cached_activities,
        ),
        session,
    )

    if len(found) < wanted:
        selector.update_preferences(all_basic_preferences())
        try:
            extra = await selector.activities_near(
                city.location.coordinate,
                settings.radius_new_activity_m,
                wanted - len(found),
                session.excluded_names() + [a.name for a in found],
                session.activities.cached_activities,
            )
        finally:
            selector.update_preferences(list(session.trip_profile.preferences))
        for activity in _fresh(extra, session):
            if not contains_match(found, activity):
                found.append(activity)

    if not found:
        session.probed_locations.append(city.location)
        logger.info(f"City {city.name} yielded no activities")
        return False

    session.activities.adopt(found)
    session.profile.add_preferred_location(city.location)
    if session.metrics is not None:
        session.metrics.observe_city_added(city.name)
    logger.info(
        f"Added city {city.name} with {len(found)} activities",
        extra={"capacity": city.capacity},
    )
    return True

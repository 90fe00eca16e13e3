"""Refinement loop: bounded rounds of strategies that fill an under-filled trip."""

import logging

from tripfill.app.metrics.core import record_strategy_outcome
from tripfill.app.utils.dates import date_difference, hours_difference, same_date

from .acquirers import (
    add_cached_activity,
    add_city,
    add_city_activity,
    fetch_activities_for_existing_cities,
)
from .reschedule import optimize_and_schedule, optimize_only
from .session import PlanningSession, Schedule
from .types import ProgressCallback

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24

STRATEGY_CACHED = "cached_pull"
STRATEGY_CITY_FILLER = "city_filler"
STRATEGY_BROADENED_FETCH = "broadened_fetch"
STRATEGY_NEW_CITY = "new_city"


def _days_left(session: PlanningSession, schedule: Schedule) -> int:
    return date_difference(session.schedule_end(schedule), session.target_end)


def _hours_left(session: PlanningSession, schedule: Schedule) -> int:
    return hours_difference(session.schedule_end(schedule), session.target_end)


def _reached_target(session: PlanningSession, schedule: Schedule) -> bool:
    return same_date(session.target_end, session.schedule_end(schedule))


async def try_adding_cached_activities(
    session: PlanningSession, schedule: Schedule, round_index: int | None = None
) -> Schedule:
    """Pull cached activities until the gap closes or a pull adds nothing.

    Each successful pull is followed by a full re-optimize, schedule and
    prune so the next budget is measured on the fresh schedule.
    """
    settings = session.settings
    max_iterations = min(settings.max_cached_iterations, _days_left(session, schedule))

    for _ in range(max_iterations):
        days = _days_left(session, schedule)
        if days > 0:
            hours_needed = float(days * settings.activity_hours_per_day)
        else:
            hours_needed = float(max(_hours_left(session, schedule), 0))
        if hours_needed <= 0:
            break

        before = len(session.activities.all_activities)
        added = add_cached_activity(session, hours_needed)
        record_strategy_outcome(
            STRATEGY_CACHED,
            added,
            round_index=round_index,
            activities_added=len(session.activities.all_activities) - before,
            metrics=session.metrics,
        )
        if not added:
            break
        schedule = await optimize_and_schedule(session)

    return schedule


async def try_adding_city_activities(
    session: PlanningSession, schedule: Schedule, round_index: int | None = None
) -> Schedule:
    """Add city-visit fillers sized to the remaining hours.

    While at least a full day remains the request is the per-day budget for
    every remaining day. Under a day it is capped at a few hours, keeping a
    buffer free at the end of the last day.
    """
    settings = session.settings
    max_iterations = min(
        settings.max_filler_iterations, len(session.profile.new_preferred_locations)
    )

    for _ in range(max_iterations):
        days = _days_left(session, schedule)
        if days <= 0:
            break

        hours_left = _hours_left(session, schedule)
        if hours_left >= HOURS_PER_DAY:
            hours_needed = days * settings.activity_hours_per_day
        else:
            hours_needed = min(
                settings.last_day_cap_hours,
                hours_left - settings.last_day_buffer_hours,
            )
        if hours_needed <= 0:
            break

        added = add_city_activity(session, hours_needed * SECONDS_PER_HOUR)
        record_strategy_outcome(
            STRATEGY_CITY_FILLER,
            added,
            round_index=round_index,
            activities_added=1 if added else 0,
            metrics=session.metrics,
        )
        if not added:
            break
        schedule = await optimize_only(session)

    return schedule


async def try_fetching_activities_for_existing_cities(
    session: PlanningSession, schedule: Schedule, round_index: int | None = None
) -> Schedule:
    """One broadened-preference fetch around cities the trip already covers."""
    before = len(session.activities.all_activities)
    added = await fetch_activities_for_existing_cities(session)
    record_strategy_outcome(
        STRATEGY_BROADENED_FETCH,
        added,
        round_index=round_index,
        activities_added=len(session.activities.all_activities) - before,
        metrics=session.metrics,
    )
    if added:
        return await optimize_only(session)
    return schedule


async def try_adding_city(
    session: PlanningSession, schedule: Schedule, round_index: int | None = None
) -> Schedule:
    """Append one newly discovered city."""
    before = len(session.activities.all_activities)
    added = await add_city(session)
    record_strategy_outcome(
        STRATEGY_NEW_CITY,
        added,
        round_index=round_index,
        activities_added=len(session.activities.all_activities) - before,
        metrics=session.metrics,
    )
    if added:
        return await optimize_only(session)
    return schedule


async def complete_schedule(
    session: PlanningSession,
    schedule: Schedule,
    on_progress: ProgressCallback | None = None,
) -> Schedule:
    """Run refinement rounds until the schedule ends on the target date.

    The number of rounds is bounded by the configured cap and by the days
    left when the loop starts. Each round tries, in order: cached pull, city
    filler, broadened fetch (first round only) and new-city discovery,
    stopping as soon as the end date matches. The loop also stops once the
    schedule runs past the target date; the caller prunes that.

    Args:
        session: Planning session to mutate
        schedule: Current schedule
        on_progress: Receives the loop's own progress (0..1)

    Returns:
        The last schedule produced
    """
    max_rounds = min(session.settings.max_refinement_rounds, _days_left(session, schedule))
    rounds_run = 0

    def done(current: Schedule) -> bool:
        return _reached_target(session, current) or _days_left(session, current) < 0

    def report(round_index: int, step: int) -> None:
        if on_progress is not None and max_rounds > 0:
            on_progress((round_index + step / 4) / max_rounds)

    for round_index in range(max_rounds):
        rounds_run = round_index + 1
        logger.info(
            f"Refinement round {rounds_run}/{max_rounds}",
            extra={"days_left": _days_left(session, schedule)},
        )

        schedule = await try_adding_cached_activities(session, schedule, round_index)
        report(round_index, 1)
        if done(schedule):
            break

        schedule = await try_adding_city_activities(session, schedule, round_index)
        report(round_index, 2)
        if done(schedule):
            break

        if round_index == 0:
            schedule = await try_fetching_activities_for_existing_cities(
                session, schedule, round_index
            )
            if done(schedule):
                break
        report(round_index, 3)

        schedule = await try_adding_city(session, schedule, round_index)
        report(round_index, 4)
        if done(schedule):
            break

    if session.metrics is not None:
        session.metrics.observe_refinement_rounds(rounds_run)
    return schedule

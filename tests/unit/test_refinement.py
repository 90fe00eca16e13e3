"""Tests for the refinement loop."""

from datetime import timedelta

import pytest

from tests.unit.engine_test_helpers import (
    BERN,
    GENEVA,
    ZURICH,
    EmptySelector,
    create_test_activity,
    create_test_city,
    create_test_profile,
    create_test_session,
    local_datetime,
)
from tripfill.app.config import Settings
from tripfill.app.models import TripActivity
from tripfill.app.planning import refinement
from tripfill.app.planning.refinement import (
    STRATEGY_BROADENED_FETCH,
    STRATEGY_CACHED,
    STRATEGY_CITY_FILLER,
    STRATEGY_NEW_CITY,
    complete_schedule,
    try_adding_cached_activities,
    try_adding_city_activities,
)
from tripfill.app.planning.reschedule import optimize_only
from tripfill.app.utils.dates import date_difference

CATALOG = [
    create_test_city(ZURICH, radius_km=15, capacity=2),
    create_test_city(BERN, radius_km=10, capacity=2.5),
    create_test_city(GENEVA, radius_km=12, capacity=3),
]


def _long_trip_session(days: int = 30, **kwargs):
    start = local_datetime(2025, 6, 1, 8)
    profile = create_test_profile(start=start, end=start + timedelta(days=days - 1, hours=14))
    return create_test_session(profile=profile, catalog=CATALOG, **kwargs)


class TestCompleteSchedule:
    """Tests for complete_schedule."""

    @pytest.mark.asyncio
    async def test_terminates_within_round_cap(self):
        """A barren selector never closes the gap; the loop still stops."""
        session = _long_trip_session()
        schedule = await optimize_only(session)
        progress: list[float] = []

        result = await complete_schedule(session, schedule, progress.append)

        rounds = session.settings.max_refinement_rounds
        assert session.metrics.refinement_rounds == [rounds]
        assert date_difference(session.schedule_end(result), session.target_end) > 0
        assert progress == sorted(progress)
        assert progress[-1] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_strategy_order_and_one_shot_broadening(self):
        session = _long_trip_session()
        schedule = await optimize_only(session)

        await complete_schedule(session, schedule)

        metrics = session.metrics
        rounds = session.settings.max_refinement_rounds
        assert metrics.strategy_attempts[STRATEGY_CACHED] == rounds
        assert metrics.strategy_attempts[STRATEGY_CITY_FILLER] == rounds
        assert metrics.strategy_attempts[STRATEGY_BROADENED_FETCH] == 1
        assert metrics.strategy_attempts[STRATEGY_NEW_CITY] == rounds
        assert metrics.strategy_successes[STRATEGY_CITY_FILLER] == rounds
        assert metrics.strategy_successes[STRATEGY_NEW_CITY] == 0

    @pytest.mark.asyncio
    async def test_barren_cities_are_probed_once(self):
        selector = EmptySelector()
        session = _long_trip_session(selector=selector)
        schedule = await optimize_only(session)

        await complete_schedule(session, schedule)

        assert session.probed_locations == [BERN, GENEVA]
        assert session.profile.new_preferred_locations == [ZURICH]

    @pytest.mark.asyncio
    async def test_round_count_bounded_by_days_left(self):
        session = _long_trip_session(days=3)
        schedule = await optimize_only(session)

        await complete_schedule(session, schedule)

        assert session.metrics.refinement_rounds[0] <= 2

    @pytest.mark.asyncio
    async def test_no_gap_runs_no_round(self):
        session = create_test_session(catalog=CATALOG)
        schedule = await optimize_only(session)

        result = await complete_schedule(session, schedule)

        assert result is schedule
        assert session.metrics.refinement_rounds == [0]
        assert session.metrics.strategy_attempts == {}


class TestTryAddingCachedActivities:
    """Tests for the cached-pull sub-loop."""

    @pytest.mark.asyncio
    async def test_pulls_until_the_pool_is_empty(self):
        cached = [
            create_test_activity("Kunsthaus", 7200, 47.3704, 8.5481),
            create_test_activity("Lindenhof", 3600, 47.3730, 8.5410),
        ]
        session = _long_trip_session(days=2, cached=cached)
        schedule = await optimize_only(session)

        await try_adding_cached_activities(session, schedule)

        assert {a.name for a in session.activities.all_activities} == {"Kunsthaus", "Lindenhof"}
        assert session.activities.cached_activities == []
        assert session.metrics.activities_added[STRATEGY_CACHED] == 2


def _schedule_ending_at(end):
    """Single-activity schedule whose last element ends at ``end``."""
    visit = create_test_activity("Lindenhof", 3600).model_copy(
        update={"start_date": end - timedelta(hours=1), "end_date": end}
    )
    return [TripActivity(activity=visit)]


def _three_city_session(**kwargs):
    start = local_datetime(2025, 6, 1, 8)
    profile = create_test_profile(
        start=start,
        end=start + timedelta(days=29, hours=14),
        preferred_locations=[ZURICH, BERN, GENEVA],
    )
    return create_test_session(profile=profile, catalog=CATALOG, **kwargs)


def _record_filler_requests(monkeypatch, added: bool = False) -> list[int]:
    requests: list[int] = []

    def fake_add_city_activity(session, seconds_needed):
        requests.append(seconds_needed)
        return added

    monkeypatch.setattr(refinement, "add_city_activity", fake_add_city_activity)
    return requests


class TestTryAddingCityActivities:
    """Tests for the city-filler sub-loop."""

    @pytest.mark.asyncio
    async def test_full_day_left_gets_a_full_day_filler(self):
        """Ending the day before the target leaves a whole day to fill."""
        start = local_datetime(2025, 6, 1, 8)
        profile = create_test_profile(start=start, end=local_datetime(2025, 6, 2, 22))
        session = create_test_session(profile=profile, catalog=CATALOG)
        schedule = await optimize_only(session)

        await try_adding_city_activities(session, schedule)

        fillers = session.activities.all_activities
        assert [a.estimated_time for a in fillers] == [8 * 3600]

    @pytest.mark.asyncio
    async def test_multi_day_request_covers_every_remaining_day(self, monkeypatch):
        requests = _record_filler_requests(monkeypatch)
        profile = create_test_profile(end=local_datetime(2025, 6, 3, 22))
        session = create_test_session(profile=profile, catalog=CATALOG)

        await try_adding_city_activities(
            session, _schedule_ending_at(local_datetime(2025, 6, 1, 9))
        )

        assert requests == [2 * 8 * 3600]

    @pytest.mark.asyncio
    async def test_under_a_day_left_is_capped(self, monkeypatch):
        requests = _record_filler_requests(monkeypatch)
        profile = create_test_profile(end=local_datetime(2025, 6, 2, 6))
        session = create_test_session(profile=profile, catalog=CATALOG)

        await try_adding_city_activities(
            session, _schedule_ending_at(local_datetime(2025, 6, 1, 9))
        )

        assert requests == [session.settings.last_day_cap_hours * 3600]

    @pytest.mark.asyncio
    async def test_no_request_when_only_the_buffer_remains(self, monkeypatch):
        requests = _record_filler_requests(monkeypatch)
        profile = create_test_profile(end=local_datetime(2025, 6, 2, 1))
        session = create_test_session(profile=profile, catalog=CATALOG)

        await try_adding_city_activities(
            session, _schedule_ending_at(local_datetime(2025, 6, 1, 23, 30))
        )

        assert requests == []
        assert session.metrics.strategy_attempts == {}

    @pytest.mark.asyncio
    async def test_no_request_once_past_the_target(self, monkeypatch):
        requests = _record_filler_requests(monkeypatch)
        session = create_test_session(catalog=CATALOG)
        schedule = _schedule_ending_at(local_datetime(2025, 6, 3, 10))

        result = await try_adding_city_activities(session, schedule)

        assert requests == []
        assert result is schedule

    @pytest.mark.asyncio
    async def test_iterations_bounded_by_preferred_locations(self, monkeypatch):
        requests = _record_filler_requests(monkeypatch, added=True)
        session = _three_city_session()

        await try_adding_city_activities(
            session, _schedule_ending_at(local_datetime(2025, 6, 1, 9))
        )

        assert len(requests) == 3
        assert session.metrics.strategy_successes[STRATEGY_CITY_FILLER] == 3

    @pytest.mark.asyncio
    async def test_iterations_bounded_by_setting(self, monkeypatch):
        requests = _record_filler_requests(monkeypatch, added=True)
        session = _three_city_session(settings=Settings(max_filler_iterations=2))

        await try_adding_city_activities(
            session, _schedule_ending_at(local_datetime(2025, 6, 1, 9))
        )

        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_stops_when_no_filler_is_added(self):
        start = local_datetime(2025, 6, 1, 8)
        profile = create_test_profile(start=start, end=start + timedelta(days=29, hours=14))
        session = create_test_session(profile=profile, catalog=[])
        schedule = await optimize_only(session)

        await try_adding_city_activities(session, schedule)

        assert session.metrics.strategy_attempts[STRATEGY_CITY_FILLER] == 1
        assert session.activities.all_activities == []

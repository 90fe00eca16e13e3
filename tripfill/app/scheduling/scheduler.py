"""Day-window scheduler.

Walks the route in order, placing the activities of each location and then
the travel leg to the next one. Activities must end by ``day_end`` and
travel by ``travel_end``; whatever does not fit moves to the next morning.
All times are rounded up to the quarter hour.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from tripfill.app.config import get_settings
from tripfill.app.models.activity import Activity
from tripfill.app.models.common import Preference, transport_mode_for
from tripfill.app.models.route import OrderedRoute
from tripfill.app.models.trip import RouteSegment, TripActivity, TripProfile, TripSegment
from tripfill.app.utils.dates import local_date

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class ScheduleParams(BaseModel):
    """Daily time windows and pacing."""

    day_start: time = Field(default=time(8, 0), description="First activity start")
    day_end: time = Field(default=time(18, 0), description="Latest activity end")
    travel_end: time = Field(default=time(22, 0), description="Latest travel end")
    max_activities_per_day: int = Field(default=4, ge=1)
    pause_between_activities_s: int = Field(
        default=15 * 60, ge=0, description="Pause before each travel leg"
    )


def apply_preference_overrides(
    preferences: list[Preference], base: ScheduleParams
) -> ScheduleParams:
    """Adjust the daily windows and pacing to the traveler's rhythm."""
    prefs = set(preferences)
    night = Preference.nightlife in prefs or Preference.night_owl in prefs
    early = Preference.early_bird in prefs
    effective = base

    if night and early:
        effective = effective.model_copy(
            update={
                "day_start": time(6, 0),
                "travel_end": time(22, 0),
                "max_activities_per_day": 6,
            }
        )
    elif night:
        effective = effective.model_copy(
            update={
                "day_start": time(10, 0),
                "day_end": time(22, 0),
                "travel_end": time(23, 59),
            }
        )
    elif early:
        effective = effective.model_copy(
            update={
                "day_start": time(6, 0),
                "travel_end": time(20, 0),
                "max_activities_per_day": 6,
            }
        )

    if Preference.slow_pace in prefs:
        effective = effective.model_copy(update={"pause_between_activities_s": 60 * 60})
    elif Preference.quick in prefs:
        effective = effective.model_copy(update={"pause_between_activities_s": 0})

    return effective


def round_up_to_quarter(moment: datetime) -> datetime:
    """Truncate to the minute, then round up to the next quarter hour."""
    moment = moment.replace(second=0, microsecond=0)
    remainder = moment.minute % 15
    if remainder == 0:
        return moment
    return moment + timedelta(minutes=15 - remainder)


class _DayCursor:
    """Current position in the schedule."""

    def __init__(self, start_day: date, params: ScheduleParams, zone: ZoneInfo) -> None:
        self.params = params
        self.zone = zone
        self.day = start_day
        self.activities_today = 0
        self.now = self._morning()

    def _morning(self) -> datetime:
        return round_up_to_quarter(
            datetime.combine(self.day, self.params.day_start, tzinfo=self.zone)
        )

    def _at(self, moment: time) -> datetime:
        return datetime.combine(self.day, moment, tzinfo=self.zone)

    def next_day(self) -> None:
        self.day += timedelta(days=1)
        self.now = self._morning()
        self.activities_today = 0

    def fits_activity(self, seconds: float) -> bool:
        return self.now + timedelta(seconds=seconds) <= self._at(self.params.day_end)

    def fits_travel(self, seconds: float) -> bool:
        return self.now + timedelta(seconds=seconds) <= self._at(self.params.travel_end)


class TripScheduler:
    """Reference scheduler assigning concrete timestamps to a route."""

    def __init__(self, params: ScheduleParams | None = None, timezone: str | None = None) -> None:
        self.params = params or ScheduleParams()
        self.timezone = timezone

    def schedule_trip(
        self,
        profile: TripProfile,
        route: OrderedRoute,
        activities: list[Activity],
        on_progress: ProgressCallback | None = None,
    ) -> list[TripActivity | TripSegment]:
        """Schedule ``activities`` along ``route``.

        Each activity is placed at most once, at the first route location it
        belongs to; activities whose location is not on the route are left
        out. Raises ValueError if the route still has pending legs.
        """
        locations = route.ordered_locations
        if not locations:
            return []

        effective = apply_preference_overrides(profile.preferences, self.params)
        zone = ZoneInfo(self.timezone or get_settings().trip_timezone)
        cursor = _DayCursor(local_date(profile.start_date, zone), effective, zone)
        mode = transport_mode_for(profile.preferences)
        placed = [False] * len(activities)
        out: list[TripActivity | TripSegment] = []

        for i, location in enumerate(locations):
            for j, activity in enumerate(activities):
                if placed[j] or not activity.location.same_location(location):
                    continue

                if cursor.activities_today >= effective.max_activities_per_day:
                    cursor.next_day()
                cursor.now = round_up_to_quarter(cursor.now)
                if not cursor.fits_activity(activity.estimated_time):
                    cursor.next_day()

                start = cursor.now
                end = round_up_to_quarter(start + timedelta(seconds=activity.estimated_time))
                out.append(
                    TripActivity(
                        activity=activity.model_copy(
                            update={"start_date": start, "end_date": end}
                        )
                    )
                )
                placed[j] = True
                cursor.activities_today += 1
                cursor.now = end

            if i < len(locations) - 1:
                travel_s = route.leg_seconds(i)
                cursor.now = round_up_to_quarter(
                    cursor.now + timedelta(seconds=effective.pause_between_activities_s)
                )
                if not cursor.fits_travel(travel_s):
                    cursor.next_day()

                start = cursor.now
                end = round_up_to_quarter(start + timedelta(seconds=travel_s))
                out.append(
                    TripSegment(
                        route_segment=RouteSegment(
                            from_location=location,
                            to_location=locations[i + 1],
                            duration_minutes=math.ceil(travel_s / 60),
                            transport_mode=mode,
                            start_date=start,
                            end_date=end,
                        )
                    )
                )
                cursor.now = end

            if on_progress is not None:
                on_progress((i + 1) / len(locations))

        skipped = placed.count(False)
        if skipped:
            logger.debug(f"{skipped} activities are not on the route and were not scheduled")

        return sorted(out, key=lambda element: element.start_date)

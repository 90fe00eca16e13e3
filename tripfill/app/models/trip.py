"""Trip settings, profiles and scheduled itinerary elements."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from .activity import Activity
from .common import Location, Preference, TransportMode


class Travelers(BaseModel):
    """Traveler counts."""

    adults: int = Field(default=1, ge=0, description="Number of adults")
    children: int = Field(default=0, ge=0, description="Number of children")


class ArrivalDeparture(BaseModel):
    """Trip endpoints."""

    arrival_location: Location | None = Field(default=None, description="Where the trip starts")
    departure_location: Location | None = Field(default=None, description="Where the trip ends")


class TripSettings(BaseModel):
    """What the user entered when creating a trip."""

    name: str = Field(default="", description="Trip name")
    start_date: datetime = Field(description="Trip start")
    end_date: datetime = Field(description="Trip end")
    travelers: Travelers = Field(default_factory=Travelers)
    preferences: list[Preference] = Field(default_factory=list)
    arrival_departure: ArrivalDeparture = Field(default_factory=ArrivalDeparture)
    destinations: list[Location] = Field(
        default_factory=list, description="Locations the user explicitly asked for"
    )

    @model_validator(mode="after")
    def validate_dates(self) -> TripSettings:
        if self.end_date < self.start_date:
            raise ValueError("Trip end_date must not be before start_date")
        return self


class TripProfile(BaseModel):
    """Constraints the engine plans against."""

    start_date: datetime = Field(description="Trip start")
    end_date: datetime = Field(description="Target end of the itinerary")
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    preferences: list[Preference] = Field(default_factory=list)
    arrival_location: Location | None = Field(default=None)
    departure_location: Location | None = Field(default=None)
    preferred_locations: list[Location] = Field(
        default_factory=list, description="User-requested locations; never mutated by the engine"
    )

    @classmethod
    def from_settings(cls, settings: TripSettings) -> TripProfile:
        """Build a profile from user trip settings."""
        return cls(
            start_date=settings.start_date,
            end_date=settings.end_date,
            adults=settings.travelers.adults,
            children=settings.travelers.children,
            preferences=list(settings.preferences),
            arrival_location=settings.arrival_departure.arrival_location,
            departure_location=settings.arrival_departure.departure_location,
            preferred_locations=list(settings.destinations),
        )


class EnhancedTripProfile(BaseModel):
    """Trip profile plus the engine's growable working set of preferred locations.

    ``new_preferred_locations`` starts as a copy of the profile's preferred
    locations and is only ever appended to during a planning session.
    """

    trip_profile: TripProfile
    new_preferred_locations: list[Location] = Field(default_factory=list)

    @classmethod
    def for_profile(cls, profile: TripProfile) -> EnhancedTripProfile:
        return cls(
            trip_profile=profile,
            new_preferred_locations=list(profile.preferred_locations),
        )

    def add_preferred_location(self, location: Location) -> None:
        self.new_preferred_locations.append(location)


class RouteSegment(BaseModel):
    """A scheduled travel leg."""

    from_location: Location
    to_location: Location
    duration_minutes: int = Field(ge=0)
    transport_mode: TransportMode = Field(default=TransportMode.car)
    start_date: datetime
    end_date: datetime


class TripActivity(BaseModel):
    """An activity with concrete timestamps."""

    kind: Literal["activity"] = "activity"
    activity: Activity

    @model_validator(mode="after")
    def validate_scheduled(self) -> TripActivity:
        if self.activity.start_date is None or self.activity.end_date is None:
            raise ValueError("Scheduled activity must carry start and end dates")
        return self

    @property
    def start_date(self) -> datetime:
        return self.activity.start_date  # type: ignore[return-value]

    @property
    def end_date(self) -> datetime:
        return self.activity.end_date  # type: ignore[return-value]


class TripSegment(BaseModel):
    """A travel leg with concrete timestamps."""

    kind: Literal["segment"] = "segment"
    route_segment: RouteSegment

    @property
    def start_date(self) -> datetime:
        return self.route_segment.start_date

    @property
    def end_date(self) -> datetime:
        return self.route_segment.end_date


TripElement = Annotated[TripActivity | TripSegment, Field(discriminator="kind")]


def scheduled_activities(schedule: list[TripActivity | TripSegment]) -> list[Activity]:
    """Activities placed by the scheduler, in schedule order."""
    return [element.activity for element in schedule if isinstance(element, TripActivity)]


def schedule_end(
    schedule: list[TripActivity | TripSegment], fallback: datetime
) -> datetime:
    """End of the last element; ``fallback`` for an empty schedule."""
    if not schedule:
        return fallback
    return schedule[-1].end_date

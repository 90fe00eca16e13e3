"""Common data types and enums used across the engine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tripfill.app.utils.geo import haversine_km


class Coordinate(BaseModel):
    """Geographic coordinates in WGS84 decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(description="Latitude in decimal degrees")
    longitude: float = Field(description="Longitude in decimal degrees")

    def haversine_distance_to(self, other: Coordinate) -> float:
        """Great-circle distance to ``other`` in km, rounded to two decimals."""
        return haversine_km(
            self.latitude, self.longitude, other.latitude, other.longitude
        )


class Location(BaseModel):
    """A named place."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Display name")
    coordinate: Coordinate = Field(description="Position of the place")
    image_url: str | None = Field(default=None, description="Optional image reference")

    def haversine_distance_to(self, other: Location) -> float:
        """Great-circle distance to ``other`` in km."""
        return self.coordinate.haversine_distance_to(other.coordinate)

    def same_location(self, other: Location) -> bool:
        """Exact name and coordinate match; the image is ignored."""
        return self.name == other.name and self.coordinate == other.coordinate


class TransportMode(str, Enum):
    """How the traveler moves between stops."""

    car = "car"
    train = "train"


class PreferenceCategory(str, Enum):
    """Grouping of preferences."""

    activity_type = "activity_type"
    environment = "environment"
    travel_companion = "travel_companion"
    rhythm = "rhythm"
    logistics = "logistics"


class Preference(str, Enum):
    """User travel preferences."""

    # Activity type
    museums = "museums"
    sports = "sports"
    shopping = "shopping"
    wellness = "wellness"
    foodie = "foodie"
    nightlife = "nightlife"

    # Environment
    scenic_views = "scenic_views"
    hike = "hike"
    urban = "urban"

    # Travel companion
    children_friendly = "children_friendly"
    group = "group"
    individual = "individual"
    couple = "couple"

    # Rhythm
    quick = "quick"
    slow_pace = "slow_pace"
    early_bird = "early_bird"
    night_owl = "night_owl"

    # Logistics
    wheelchair_accessible = "wheelchair_accessible"
    public_transport = "public_transport"
    intermediate_stops = "intermediate_stops"

    @property
    def category(self) -> PreferenceCategory:
        """Category this preference belongs to."""
        return PREFERENCE_CATEGORIES[self]


PREFERENCE_CATEGORIES: dict[Preference, PreferenceCategory] = {
    Preference.museums: PreferenceCategory.activity_type,
    Preference.sports: PreferenceCategory.activity_type,
    Preference.shopping: PreferenceCategory.activity_type,
    Preference.wellness: PreferenceCategory.activity_type,
    Preference.foodie: PreferenceCategory.activity_type,
    Preference.nightlife: PreferenceCategory.activity_type,
    Preference.scenic_views: PreferenceCategory.environment,
    Preference.hike: PreferenceCategory.environment,
    Preference.urban: PreferenceCategory.environment,
    Preference.children_friendly: PreferenceCategory.travel_companion,
    Preference.group: PreferenceCategory.travel_companion,
    Preference.individual: PreferenceCategory.travel_companion,
    Preference.couple: PreferenceCategory.travel_companion,
    Preference.quick: PreferenceCategory.rhythm,
    Preference.slow_pace: PreferenceCategory.rhythm,
    Preference.early_bird: PreferenceCategory.rhythm,
    Preference.night_owl: PreferenceCategory.rhythm,
    Preference.wheelchair_accessible: PreferenceCategory.logistics,
    Preference.public_transport: PreferenceCategory.logistics,
    Preference.intermediate_stops: PreferenceCategory.logistics,
}

# Preferences that only steer scheduling or routing, never activity search.
NON_SEARCH_PREFERENCES: frozenset[Preference] = frozenset(
    {
        Preference.quick,
        Preference.slow_pace,
        Preference.early_bird,
        Preference.night_owl,
        Preference.intermediate_stops,
        Preference.public_transport,
    }
)


def preferences_in(category: PreferenceCategory) -> list[Preference]:
    """All preferences of a category, in declaration order."""
    return [pref for pref in Preference if pref.category == category]


def all_basic_preferences() -> list[Preference]:
    """Environment and activity-type preferences: the broadened search filter."""
    return preferences_in(PreferenceCategory.environment) + preferences_in(
        PreferenceCategory.activity_type
    )


def transport_mode_for(preferences: list[Preference] | set[Preference]) -> TransportMode:
    """Train when public transport is requested, car otherwise."""
    if Preference.public_transport in preferences:
        return TransportMode.train
    return TransportMode.car

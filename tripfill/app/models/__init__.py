"""Convenient imports for all model types."""

# Common types and enums
from .common import (
    Coordinate,
    Location,
    Preference,
    PreferenceCategory,
    TransportMode,
    all_basic_preferences,
    preferences_in,
    transport_mode_for,
)

# Activities and catalog entries
from .activity import Activity
from .city import CityConfig

# Routes
from .route import (
    PENDING,
    KnownDuration,
    OrderedRoute,
    PendingDuration,
    SegmentDuration,
    known,
)

# Trips
from .trip import (
    ArrivalDeparture,
    EnhancedTripProfile,
    RouteSegment,
    Travelers,
    TripActivity,
    TripElement,
    TripProfile,
    TripSegment,
    TripSettings,
)

__all__ = [
    "Coordinate",
    "Location",
    "Preference",
    "PreferenceCategory",
    "TransportMode",
    "all_basic_preferences",
    "preferences_in",
    "transport_mode_for",
    "Activity",
    "CityConfig",
    "PENDING",
    "KnownDuration",
    "OrderedRoute",
    "PendingDuration",
    "SegmentDuration",
    "known",
    "ArrivalDeparture",
    "EnhancedTripProfile",
    "RouteSegment",
    "Travelers",
    "TripActivity",
    "TripElement",
    "TripProfile",
    "TripSegment",
    "TripSettings",
]

"""Trip completion engine and its refinement strategies."""

from .engine import TripEngine
from .errors import (
    ActivitySelectionError,
    MissingEndpointError,
    NoCandidateCityError,
    RouteOptimizationError,
    TripPlanningError,
)
from .session import ActivitySelectionParameters, PlanningSession, TripActivities

__all__ = [
    "TripEngine",
    "ActivitySelectionError",
    "MissingEndpointError",
    "NoCandidateCityError",
    "RouteOptimizationError",
    "TripPlanningError",
    "ActivitySelectionParameters",
    "PlanningSession",
    "TripActivities",
]

"""Trip planning exceptions."""


class TripPlanningError(Exception):
    """Base exception for trip planning errors."""
    pass


class MissingEndpointError(TripPlanningError, ValueError):
    """Raised when the arrival or departure location is missing."""
    pass


class ActivitySelectionError(TripPlanningError):
    """Raised when the initial activity selection fails."""
    pass


class RouteOptimizationError(TripPlanningError):
    """Raised when the initial route cannot be optimized."""
    pass


class NoCandidateCityError(TripPlanningError):
    """Raised when city discovery must choose from an empty candidate set."""
    pass

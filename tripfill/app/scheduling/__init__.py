"""Reference day-window scheduler."""

from .scheduler import (
    ScheduleParams,
    TripScheduler,
    apply_preference_overrides,
    round_up_to_quarter,
)

__all__ = [
    "ScheduleParams",
    "TripScheduler",
    "apply_preference_overrides",
    "round_up_to_quarter",
]

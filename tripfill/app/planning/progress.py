"""Progress weights and monotonic progress reporting."""

from pydantic import BaseModel, Field, model_validator

from .types import ProgressCallback

_TOLERANCE = 1e-6


class ComputeProgression(BaseModel):
    """Share of the overall progress bar owned by each phase."""

    select_activities: float = Field(default=0.15, ge=0)
    optimize_route: float = Field(default=0.15, ge=0)
    fetch_in_between: float = Field(default=0.05, ge=0)
    schedule_trip: float = Field(default=0.05, ge=0)
    final_scheduling: float = Field(default=0.60, ge=0)

    @model_validator(mode="after")
    def validate_sum(self) -> "ComputeProgression":
        total = (
            self.select_activities
            + self.optimize_route
            + self.fetch_in_between
            + self.schedule_trip
            + self.final_scheduling
        )
        if abs(total - 1.0) > _TOLERANCE:
            raise ValueError(f"Compute progression weights must sum to 1, got {total}")
        return self


class FinalSchedulingProgression(BaseModel):
    """Split of the final-scheduling phase."""

    loop_filling: float = Field(default=0.8, ge=0)
    final_optimization: float = Field(default=0.2, ge=0)

    @model_validator(mode="after")
    def validate_sum(self) -> "FinalSchedulingProgression":
        total = self.loop_filling + self.final_optimization
        if abs(total - 1.0) > _TOLERANCE:
            raise ValueError(f"Final scheduling weights must sum to 1, got {total}")
        return self


class ProgressReporter:
    """Forwards progress to a callback, never letting it go backwards or past 1."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self.last: float = 0.0

    def __call__(self, value: float) -> None:
        value = min(max(value, self.last), 1.0)
        self.last = value
        if self._callback is not None:
            self._callback(value)

    def scaled(self, start: float, span: float) -> ProgressCallback:
        """Callback mapping a sub-task's 0..1 progress onto [start, start + span]."""

        def report(fraction: float) -> None:
            self(start + span * min(max(fraction, 0.0), 1.0))

        return report

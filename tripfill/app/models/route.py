"""Ordered route with per-segment durations.

A segment duration is either known or pending. Pending segments must be
filled in by the route optimizer's incremental recompute before the route
can be scheduled.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Location


class KnownDuration(BaseModel):
    """A computed travel time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["known"] = "known"
    seconds: float = Field(ge=0, description="Travel time in seconds")


class PendingDuration(BaseModel):
    """A travel time that still has to be computed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pending"] = "pending"


SegmentDuration = Annotated[
    KnownDuration | PendingDuration, Field(discriminator="kind")
]

PENDING = PendingDuration()


def known(seconds: float) -> KnownDuration:
    return KnownDuration(seconds=seconds)


class OrderedRoute(BaseModel):
    """Locations in visiting order plus the travel time between each pair."""

    ordered_locations: list[Location] = Field(description="Stops in visiting order")
    segment_durations: list[SegmentDuration] = Field(
        default_factory=list,
        description="Duration of leg i -> i+1; one fewer than the locations",
    )
    total_duration: float = Field(default=0.0, description="Sum of known legs in seconds")

    @model_validator(mode="after")
    def validate_segment_count(self) -> OrderedRoute:
        """Ensure there is exactly one duration per consecutive location pair."""
        expected = max(len(self.ordered_locations) - 1, 0)
        if len(self.segment_durations) != expected:
            raise ValueError(
                f"Route has {len(self.ordered_locations)} locations but "
                f"{len(self.segment_durations)} segment durations (expected {expected})"
            )
        return self

    def invalidated_indices(self) -> list[int]:
        """Indices of segments whose duration is pending."""
        return [
            i
            for i, duration in enumerate(self.segment_durations)
            if isinstance(duration, PendingDuration)
        ]

    def is_complete(self) -> bool:
        return not self.invalidated_indices()

    def leg_seconds(self, index: int) -> float:
        """Known duration of leg ``index``; raises if it is still pending."""
        duration = self.segment_durations[index]
        if isinstance(duration, PendingDuration):
            raise ValueError(f"Segment {index} duration has not been computed")
        return duration.seconds

    def known_total(self) -> float:
        return sum(
            d.seconds for d in self.segment_durations if isinstance(d, KnownDuration)
        )

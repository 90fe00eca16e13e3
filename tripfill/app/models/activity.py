"""Activity model."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import Location


class Activity(BaseModel):
    """A schedulable unit at a location.

    Activities are value objects. Membership and removal use ``matches``,
    i.e. (location, estimated_time) equality, not identity.
    """

    model_config = ConfigDict(frozen=True)

    location: Location = Field(description="Where the activity takes place")
    estimated_time: int = Field(ge=0, description="Estimated duration in seconds")
    description: str = Field(default="", description="Short description")
    image_urls: tuple[str, ...] = Field(default=(), description="Image references")
    start_date: datetime | None = Field(
        default=None, description="Assigned by the scheduler; placeholder until then"
    )
    end_date: datetime | None = Field(
        default=None, description="Assigned by the scheduler; placeholder until then"
    )

    @property
    def name(self) -> str:
        return self.location.name

    def matches(self, other: Activity) -> bool:
        """Same place and same duration."""
        return (
            self.estimated_time == other.estimated_time
            and self.location.same_location(other.location)
        )


def find_match(activities: Sequence[Activity], target: Activity) -> int:
    """Index of the first activity matching ``target``, or -1."""
    for i, activity in enumerate(activities):
        if activity.matches(target):
            return i
    return -1


def remove_match(activities: list[Activity], target: Activity) -> bool:
    """Remove the first activity matching ``target`` in place."""
    idx = find_match(activities, target)
    if idx == -1:
        return False
    del activities[idx]
    return True


def contains_match(activities: Sequence[Activity], target: Activity) -> bool:
    return find_match(activities, target) != -1

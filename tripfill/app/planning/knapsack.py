"""Bounded 0/1 knapsack over activity durations.

Weight and value of an item are both its duration in whole minutes, so the
solver maximizes the number of minutes filled without exceeding the budget.
"""

import logging

from tripfill.app.config import get_settings
from tripfill.app.models.activity import Activity

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
UNREACHABLE = -1


def activity_minutes(activity: Activity) -> int:
    """Duration of an activity in whole minutes (floored)."""
    return activity.estimated_time // SECONDS_PER_MINUTE


def fill_table(
    weights: list[int], dp: list[int], parent: list[int], limit_minutes: int
) -> None:
    """Fill the one-dimensional reachability table in place.

    ``dp[j]`` ends up either ``UNREACHABLE`` or ``j`` (the minutes filled to
    reach exactly ``j``). ``parent[j]`` is the index of the item that first
    reached ``j``; following parents always visits strictly smaller indices,
    so no item is used twice.

    Args:
        weights: Item weights in minutes
        dp: Table of size ``limit_minutes + 1`` with ``dp[0] == 0``
        parent: Back-pointer table of the same size
        limit_minutes: Budget in minutes
    """
    for i, weight in enumerate(weights):
        # Zero-minute items would make reconstruction loop forever
        if weight <= 0:
            continue

        for j in range(limit_minutes, weight - 1, -1):
            if dp[j - weight] == UNREACHABLE:
                continue
            new_time = dp[j - weight] + weight
            if new_time > dp[j]:
                dp[j] = new_time
                parent[j] = i


def solve_time_knapsack(
    candidates: list[Activity], limit_minutes: int, cap_minutes: int | None = None
) -> list[Activity]:
    """Select the subset of ``candidates`` that fills the most minutes.

    Args:
        candidates: Pool of candidate activities
        limit_minutes: Time budget in minutes
        cap_minutes: Hard upper bound on the table size; defaults to
            ``Settings.knapsack_cap_hours`` hours

    Returns:
        Selected activities, empty if the budget is not positive or nothing fits
    """
    if cap_minutes is None:
        cap_minutes = get_settings().knapsack_cap_hours * 60
    limit = min(limit_minutes, cap_minutes)
    if limit <= 0 or not candidates:
        return []

    # Items with no duration or that alone exceed the budget never enter the table
    eligible = [
        activity for activity in candidates if 0 < activity_minutes(activity) <= limit
    ]
    if not eligible:
        return []
    weights = [activity_minutes(activity) for activity in eligible]

    dp = [UNREACHABLE] * (limit + 1)
    parent = [UNREACHABLE] * (limit + 1)
    dp[0] = 0

    fill_table(weights, dp, parent, limit)

    best = next(j for j in range(limit, -1, -1) if dp[j] != UNREACHABLE)

    selected: list[Activity] = []
    current = best
    while current > 0:
        index = parent[current]
        if index == UNREACHABLE:
            break
        selected.append(eligible[index])
        current -= weights[index]

    logger.debug(
        f"Knapsack filled {best}/{limit} minutes with {len(selected)} activities",
        extra={"candidates": len(candidates), "eligible": len(eligible)},
    )
    return selected

"""Metrics façade for refinement strategy tracking."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tripfill.app.metrics.registry import MetricsClient

logger = logging.getLogger(__name__)


def record_strategy_outcome(
    strategy: str,
    added: bool,
    round_index: int | None = None,
    activities_added: int = 0,
    source: str | None = None,
    metrics: "MetricsClient | None" = None,
) -> None:
    """Record the outcome of one refinement strategy invocation.

    Logs a structured record and, when a metrics client is given, updates
    its counters.

    Args:
        strategy: Name of the strategy that ran.
        added: Whether the strategy mutated the trip.
        round_index: Refinement round, if the call happened inside the loop.
        activities_added: Number of activities the call appended.
        source: Counter bucket for added activities; defaults to ``strategy``.
        metrics: Optional metrics client.
    """
    logger.info(
        "strategy_outcome",
        extra={
            "strategy": strategy,
            "added": added,
            "round_index": round_index,
            "activities_added": activities_added,
        },
    )

    if metrics is None:
        return

    metrics.inc_strategy_attempt(strategy)
    if added:
        metrics.inc_strategy_success(strategy)
    if activities_added:
        metrics.inc_activities_added(source or strategy, activities_added)

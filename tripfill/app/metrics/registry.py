"""In-process metrics registry for trip completion runs."""

from collections import defaultdict


class MetricsClient:
    """
    Simple in-process metrics client for tracking refinement work.

    Stores metrics in memory for testing and internal monitoring.
    """

    def __init__(self) -> None:
        # Strategy invocations: strategy -> count
        self.strategy_attempts: dict[str, int] = defaultdict(int)

        # Strategy invocations that mutated the trip: strategy -> count
        self.strategy_successes: dict[str, int] = defaultdict(int)

        # Activities added: source -> count
        self.activities_added: dict[str, int] = defaultdict(int)

        # Activities moved back to the cached pool: reason -> count
        self.activities_pruned: dict[str, int] = defaultdict(int)

        # Cities appended by discovery, in order
        self.cities_added: list[str] = []

        # In-between stops inserted
        self.stops_inserted: int = 0

        # Refinement rounds per session
        self.refinement_rounds: list[int] = []

    def inc_strategy_attempt(self, strategy: str) -> None:
        """Increment attempt counter for a strategy."""
        self.strategy_attempts[strategy] += 1

    def inc_strategy_success(self, strategy: str) -> None:
        """Increment success counter for a strategy."""
        self.strategy_successes[strategy] += 1

    def inc_activities_added(self, source: str, count: int = 1) -> None:
        """Increment added-activity counter for a source."""
        self.activities_added[source] += count

    def inc_activities_pruned(self, reason: str, count: int = 1) -> None:
        """Increment pruned-activity counter for a reason."""
        self.activities_pruned[reason] += count

    def observe_city_added(self, city: str) -> None:
        """Record a discovered city."""
        self.cities_added.append(city)

    def inc_stops_inserted(self, count: int = 1) -> None:
        """Increment in-between stop counter."""
        self.stops_inserted += count

    def observe_refinement_rounds(self, rounds: int) -> None:
        """Record number of refinement rounds for a session."""
        self.refinement_rounds.append(rounds)

    def get_strategy_stats(self, strategy: str) -> dict[str, float]:
        """Get attempt/success statistics for a strategy."""
        attempts = self.strategy_attempts.get(strategy, 0)
        successes = self.strategy_successes.get(strategy, 0)
        return {
            "attempts": attempts,
            "successes": successes,
            "success_rate": successes / attempts if attempts > 0 else 0.0,
        }

    def get_round_stats(self) -> dict[str, float]:
        """Get refinement round statistics."""
        if not self.refinement_rounds:
            return {"count": 0, "min": 0, "max": 0, "avg": 0}

        return {
            "count": len(self.refinement_rounds),
            "min": min(self.refinement_rounds),
            "max": max(self.refinement_rounds),
            "avg": sum(self.refinement_rounds) / len(self.refinement_rounds),
        }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        self.strategy_attempts.clear()
        self.strategy_successes.clear()
        self.activities_added.clear()
        self.activities_pruned.clear()
        self.cities_added.clear()
        self.stops_inserted = 0
        self.refinement_rounds.clear()

"""Unit tests for MetricsClient and the strategy outcome façade."""

import logging

import pytest

from tripfill.app.metrics import MetricsClient, record_strategy_outcome


@pytest.fixture
def metrics() -> MetricsClient:
    """Create a fresh metrics client."""
    return MetricsClient()


def test_strategy_stats_calculates_success_rate(metrics: MetricsClient) -> None:
    """Test that attempts and successes give a success rate."""
    metrics.inc_strategy_attempt("cached_pull")
    metrics.inc_strategy_attempt("cached_pull")
    metrics.inc_strategy_success("cached_pull")

    stats = metrics.get_strategy_stats("cached_pull")
    assert stats["attempts"] == 2
    assert stats["successes"] == 1
    assert stats["success_rate"] == 0.5


def test_strategy_stats_empty(metrics: MetricsClient) -> None:
    """Test stats for a strategy that never ran."""
    stats = metrics.get_strategy_stats("nonexistent")
    assert stats["attempts"] == 0
    assert stats["success_rate"] == 0.0


def test_activity_counters_by_bucket(metrics: MetricsClient) -> None:
    """Test that added and pruned activities are tracked per bucket."""
    metrics.inc_activities_added("new_city", 3)
    metrics.inc_activities_added("new_city")
    metrics.inc_activities_pruned("overrun", 2)
    metrics.inc_activities_pruned("unscheduled")

    assert metrics.activities_added["new_city"] == 4
    assert metrics.activities_pruned["overrun"] == 2
    assert metrics.activities_pruned["unscheduled"] == 1


def test_round_stats(metrics: MetricsClient) -> None:
    """Test refinement round statistics."""
    metrics.observe_refinement_rounds(1)
    metrics.observe_refinement_rounds(3)
    metrics.observe_refinement_rounds(5)

    stats = metrics.get_round_stats()
    assert stats["count"] == 3
    assert stats["min"] == 1
    assert stats["max"] == 5
    assert stats["avg"] == 3


def test_round_stats_empty(metrics: MetricsClient) -> None:
    """Test round statistics before any session."""
    assert metrics.get_round_stats() == {"count": 0, "min": 0, "max": 0, "avg": 0}


def test_reset_clears_all_metrics(metrics: MetricsClient) -> None:
    """Test that reset clears all stored metrics."""
    metrics.inc_strategy_attempt("new_city")
    metrics.inc_activities_added("new_city", 2)
    metrics.observe_city_added("Bern")
    metrics.inc_stops_inserted(2)
    metrics.observe_refinement_rounds(2)

    metrics.reset()

    assert len(metrics.strategy_attempts) == 0
    assert len(metrics.activities_added) == 0
    assert metrics.cities_added == []
    assert metrics.stops_inserted == 0
    assert metrics.refinement_rounds == []


class TestRecordStrategyOutcome:
    """Tests for record_strategy_outcome."""

    def test_updates_counters(self, metrics: MetricsClient) -> None:
        record_strategy_outcome("new_city", True, round_index=0, activities_added=3, metrics=metrics)
        record_strategy_outcome("new_city", False, round_index=1, metrics=metrics)

        assert metrics.strategy_attempts["new_city"] == 2
        assert metrics.strategy_successes["new_city"] == 1
        assert metrics.activities_added["new_city"] == 3

    def test_source_overrides_bucket(self, metrics: MetricsClient) -> None:
        record_strategy_outcome(
            "broadened_fetch", True, activities_added=2, source="selector", metrics=metrics
        )

        assert metrics.activities_added == {"selector": 2}

    def test_logs_without_metrics_client(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="tripfill.app.metrics.core"):
            record_strategy_outcome("city_filler", False, round_index=2)

        [record] = caplog.records
        assert record.getMessage() == "strategy_outcome"
        assert record.strategy == "city_filler"
        assert record.added is False
        assert record.round_index == 2

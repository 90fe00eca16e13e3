"""Metrics collection for trip completion."""

from .core import record_strategy_outcome
from .registry import MetricsClient

__all__ = ["MetricsClient", "record_strategy_outcome"]

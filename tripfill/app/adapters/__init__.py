"""Reference collaborators: fixture activity selector and haversine routing."""

from .activities import CatalogEntry, FixtureActivitySelector, load_fixture_catalog
from .routing import HaversineRouteOptimizer

__all__ = [
    "CatalogEntry",
    "FixtureActivitySelector",
    "HaversineRouteOptimizer",
    "load_fixture_catalog",
]

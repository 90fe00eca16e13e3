"""Static catalog of known cities."""

from .cities import load_city_catalog, parse_city_catalog, parse_city_line

__all__ = ["load_city_catalog", "parse_city_catalog", "parse_city_line"]

"""City catalog loading.

The catalog is a plain-text resource with one ``Name;Lat;Lon;RadiusKm;Capacity``
entry per line. Blank lines and ``#`` comments are ignored; malformed entries
are logged and skipped so one bad line never takes the catalog down.
"""

import logging
from collections.abc import Iterable
from importlib import resources
from pathlib import Path

from pydantic import ValidationError

from tripfill.app.config import get_settings
from tripfill.app.models.city import CityConfig
from tripfill.app.models.common import Coordinate, Location

logger = logging.getLogger(__name__)

_RESOURCE_PACKAGE = "tripfill.app.catalog"
_RESOURCE_NAME = "data/major_cities.txt"

_catalog_cache: dict[Path | None, tuple[CityConfig, ...]] = {}


def parse_city_line(line: str) -> CityConfig | None:
    """Parse one catalog entry, or return None if it is malformed."""
    parts = [part.strip() for part in line.split(";")]
    if len(parts) < 5:
        logger.warning(f"Invalid city catalog entry format: {line!r}")
        return None

    try:
        return CityConfig(
            location=Location(
                name=parts[0],
                coordinate=Coordinate(latitude=float(parts[1]), longitude=float(parts[2])),
            ),
            radius_km=float(parts[3]),
            capacity=float(parts[4]),
        )
    except (ValueError, ValidationError) as e:
        logger.warning(
            f"Failed to parse city catalog entry: {line!r}",
            extra={"error": str(e)},
        )
        return None


def parse_city_catalog(lines: Iterable[str]) -> list[CityConfig]:
    """Parse catalog lines, preserving order."""
    cities = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        city = parse_city_line(line)
        if city is not None:
            cities.append(city)
    return cities


def load_city_catalog(path: Path | None = None) -> tuple[CityConfig, ...]:
    """Load the city catalog once and serve it read-only afterwards.

    Args:
        path: Explicit catalog file. Defaults to ``Settings.city_catalog_path``,
            then to the packaged resource.

    Returns:
        Catalog entries in file order
    """
    if path is None:
        path = get_settings().city_catalog_path

    cached = _catalog_cache.get(path)
    if cached is not None:
        return cached

    if path is None:
        text = resources.files(_RESOURCE_PACKAGE).joinpath(_RESOURCE_NAME).read_text(
            encoding="utf-8"
        )
    else:
        text = path.read_text(encoding="utf-8")

    catalog = tuple(parse_city_catalog(text.splitlines()))
    logger.info(
        f"Loaded {len(catalog)} cities into catalog",
        extra={"source": str(path) if path else _RESOURCE_NAME},
    )
    _catalog_cache[path] = catalog
    return catalog

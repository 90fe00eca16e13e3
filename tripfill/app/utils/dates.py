"""Calendar arithmetic in the trip's time zone.

Day comparisons are done on local calendar dates, never on elapsed time:
23:00 on Monday and 01:00 on Tuesday are one day apart.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from tripfill.app.config import get_settings


def _zone(zone: ZoneInfo | str | None) -> ZoneInfo:
    if zone is None:
        return ZoneInfo(get_settings().trip_timezone)
    if isinstance(zone, str):
        return ZoneInfo(zone)
    return zone


def localize(moment: datetime, zone: ZoneInfo | str | None = None) -> datetime:
    """Return ``moment`` in the trip zone; naive values are taken as zone-local."""
    tz = _zone(zone)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def local_date(moment: datetime, zone: ZoneInfo | str | None = None) -> date:
    """Calendar date of ``moment`` in the trip zone."""
    return localize(moment, zone).date()


def date_difference(
    start: datetime, end: datetime, zone: ZoneInfo | str | None = None
) -> int:
    """Number of calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return (local_date(end, zone) - local_date(start, zone)).days


def hours_difference(
    start: datetime, end: datetime, zone: ZoneInfo | str | None = None
) -> int:
    """Whole hours elapsed from ``start`` to ``end``, truncated toward zero."""
    delta = localize(end, zone) - localize(start, zone)
    return int(delta.total_seconds() / 3600)


def same_date(
    first: datetime, second: datetime, zone: ZoneInfo | str | None = None
) -> bool:
    """True when both instants fall on the same calendar day."""
    return local_date(first, zone) == local_date(second, zone)

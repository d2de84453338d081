"""Datetime helpers.

Timestamps are stored as naive UTC values in ``TIMESTAMP`` columns; these
helpers convert at the edges.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clinic_notify.config import settings


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC; naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_zone(tz_name: Optional[str]) -> ZoneInfo:
    """Resolve a clinic timezone, falling back to the configured default."""
    for candidate in (tz_name, settings.DEFAULT_TIMEZONE):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return ZoneInfo("UTC")


def local_date(as_of_utc: datetime, zone: ZoneInfo) -> date:
    """Calendar date in ``zone`` at the naive-UTC instant ``as_of_utc``."""
    return as_of_utc.replace(tzinfo=timezone.utc).astimezone(zone).date()


def local_midnight_utc(day: date, zone: ZoneInfo) -> datetime:
    """Naive UTC instant of local midnight starting ``day`` in ``zone``."""
    return to_naive_utc(datetime.combine(day, time.min).replace(tzinfo=zone))


def local_day_bounds(day: date, zone: ZoneInfo) -> Tuple[datetime, datetime]:
    """Half-open ``[start, end)`` naive UTC bounds of the local calendar day."""
    return local_midnight_utc(day, zone), local_midnight_utc(day + timedelta(days=1), zone)


def local_hour(value_utc: datetime, zone: ZoneInfo) -> int:
    return value_utc.replace(tzinfo=timezone.utc).astimezone(zone).hour

"""Timezone helpers.

Appointment times are stored as naive UTC (``TIMESTAMP WITHOUT TIME ZONE``);
the availability engine works on aware UTC instants and reads working hours in
the provider's IANA zone.
"""
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def is_valid_time_zone(name: str | None) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def get_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def as_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; naive input is taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def local_to_utc(local: datetime, time_zone: str) -> datetime:
    """Read a naive wall-clock datetime in ``time_zone`` and return aware UTC.

    Aware input is only converted, its own offset wins.

    >>> local_to_utc(datetime(2026, 2, 15, 9, 0), "Australia/Brisbane")
    datetime.datetime(2026, 2, 14, 23, 0, tzinfo=datetime.timezone.utc)
    """
    if local.tzinfo is None:
        local = local.replace(tzinfo=get_zone(time_zone))
    return local.astimezone(UTC)


def utc_to_local(instant: datetime, time_zone: str) -> datetime:
    return as_utc(instant).astimezone(get_zone(time_zone))

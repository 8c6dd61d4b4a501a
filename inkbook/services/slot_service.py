import logging
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from inkbook.core.exceptions import SlotSearchExhausted
from inkbook.core.timezones import as_utc, get_zone
from inkbook.models.booking import AppointmentInterval, WorkDay
from inkbook.services.schedule_service import (
    WEEKDAY_NAMES,
    day_window,
    find_work_day,
    local_day_and_minutes,
)

logger = logging.getLogger(__name__)

SLOT_GRANULARITY_MINUTES = 30
SEARCH_HORIZON = relativedelta(years=1)
MAX_FAILURE_SAMPLES = 5


def align_to_grid(instant: datetime, zone: ZoneInfo | None = None) -> datetime:
    """Round up to the next 30-minute boundary of the wall clock in ``zone`` (UTC by default).

    Aligned instants are kept as-is. Zones offset by :15 or :45 (Asia/Kathmandu)
    get a grid that still hits local :00 and :30.
    """
    instant = as_utc(instant)
    offset = instant.astimezone(zone).utcoffset() if zone is not None else timedelta(0)
    local = instant + offset
    aligned = local.replace(second=0, microsecond=0)
    remainder = aligned.minute % SLOT_GRANULARITY_MINUTES
    if remainder or aligned != local:
        aligned += timedelta(minutes=SLOT_GRANULARITY_MINUTES - remainder)
    return aligned - offset


def search_origin(start: datetime, now: datetime | None = None, time_zone: str = "UTC") -> datetime:
    """Where a search actually begins: ``start`` or ``now`` if that is later, on the local grid."""
    start = as_utc(start)
    current = as_utc(now) if now is not None else datetime.now(UTC)
    return align_to_grid(max(start, current), get_zone(time_zone))


def _format_hm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def find_next_slot(
    start: datetime,
    duration_minutes: int,
    schedule: list[WorkDay],
    busy: list[AppointmentInterval],
    time_zone: str,
    now: datetime | None = None,
) -> datetime:
    """Earliest start >= ``start`` that sits inside working hours and clears ``busy``.

    Working hours are read on the provider's wall clock in ``time_zone``; the
    returned instant is aware UTC. Raises SlotSearchExhausted when nothing fits
    within a year.
    """
    zone = get_zone(time_zone)
    origin = search_origin(start, now, time_zone)
    pointer = origin
    horizon_end = origin + SEARCH_HORIZON
    step = timedelta(minutes=SLOT_GRANULARITY_MINUTES)
    duration = timedelta(minutes=duration_minutes)

    windows: dict[str, tuple[int, int] | None] = {}
    for day_name in WEEKDAY_NAMES:
        work_day = find_work_day(schedule, day_name)
        if work_day is not None:
            windows[day_name] = day_window(work_day)

    failures: list[str] = []
    logger.debug("Searching for %d-minute slot from %s in TZ %s", duration_minutes, origin.isoformat(), time_zone)

    while pointer <= horizon_end:
        day_name, current = local_day_and_minutes(pointer, zone)
        if day_name in windows:
            window = windows[day_name]
            if window is None:
                if not failures:
                    failures.append(f"{day_name} ParseFail")
            else:
                open_minutes, close_minutes = window
                if open_minutes <= current and current + duration_minutes <= close_minutes:
                    candidate_end = pointer + duration
                    if not any(interval.overlaps(pointer, candidate_end) for interval in busy):
                        return pointer
                    if len(failures) < MAX_FAILURE_SAMPLES:
                        failures.append(f"{day_name} {_format_hm(current)} Collision")
                elif (
                    open_minutes - 60 < current < close_minutes + 60
                    and len(failures) < MAX_FAILURE_SAMPLES
                ):
                    failures.append(
                        f"{day_name} {_format_hm(current)} Outside "
                        f"({_format_hm(open_minutes)}-{_format_hm(close_minutes % (24 * 60))} "
                        f"vs {_format_hm(current)}+{duration_minutes}m)"
                    )
        pointer += step

    logger.info("Slot search exhausted from %s in TZ %s", origin.isoformat(), time_zone)
    raise SlotSearchExhausted(failures, origin, time_zone)

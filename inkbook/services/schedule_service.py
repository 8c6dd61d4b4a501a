import json
import logging
import re
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from inkbook.models.booking import WorkDay

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_START_KEYS = ("start", "startTime", "start_time")
_END_KEYS = ("end", "endTime", "end_time")


def parse_time(value: str | None) -> tuple[int, int] | None:
    """Parse "14:30" or "02:30 PM" into (hour, minute). None when malformed."""
    if not isinstance(value, str):
        return None
    normalized = value.strip().upper()
    is_pm = normalized.endswith("PM")
    is_am = normalized.endswith("AM")
    if is_pm or is_am:
        normalized = normalized[:-2].strip()
    match = _TIME_RE.match(normalized)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if minute > 59 or hour > 24 or (hour == 24 and minute):
        return None
    if is_pm and hour < 12:
        hour += 12
    elif is_am and hour == 12:
        hour = 0
    return hour, minute


def _first_present(raw: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = raw.get(key)
        if value:
            return str(value)
    return None


def _to_work_day(day: str, raw: dict[str, Any]) -> WorkDay:
    return WorkDay(
        day=day.strip().capitalize(),
        enabled=bool(raw.get("enabled", False)),
        start=_first_present(raw, _START_KEYS),
        end=_first_present(raw, _END_KEYS),
    )


def normalize_schedule(raw: Any) -> list[WorkDay]:
    """Turn a stored weekly schedule into a list of WorkDay records.

    Accepts {"monday": {...}}, [{"day": "Monday", ...}], or the JSON text of
    either. Anything unusable yields an empty list.
    """
    if raw is None or raw == "":
        logger.warning("normalize_schedule received empty schedule")
        return []
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Failed to parse work schedule JSON string")
            return []

    if isinstance(raw, dict):
        return [
            _to_work_day(str(key), value if isinstance(value, dict) else {})
            for key, value in raw.items()
        ]
    if isinstance(raw, list):
        days: list[WorkDay] = []
        for entry in raw:
            if isinstance(entry, WorkDay):
                days.append(entry)
            elif isinstance(entry, dict) and entry.get("day"):
                days.append(_to_work_day(str(entry["day"]), entry))
        return days

    logger.warning("Unsupported work schedule payload type: %s", type(raw).__name__)
    return []


def day_window(day: WorkDay) -> tuple[int, int] | None:
    """(start, end) in minutes since local midnight; end past 1440 for overnight hours.

    None when the day is disabled or its hours do not parse.
    """
    if not day.enabled:
        return None
    start = parse_time(day.start)
    end = parse_time(day.end)
    if start is None or end is None:
        return None
    start_minutes = start[0] * 60 + start[1]
    end_minutes = end[0] * 60 + end[1]
    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY
    return start_minutes, end_minutes


def max_daily_minutes(schedule: list[WorkDay]) -> int:
    """Longest contiguous working block across the week, 0 if no day qualifies."""
    longest = 0
    for day in schedule:
        window = day_window(day)
        if window is not None:
            longest = max(longest, window[1] - window[0])
    return longest


def find_work_day(schedule: list[WorkDay], day_name: str) -> WorkDay | None:
    wanted = day_name.lower()
    for day in schedule:
        if day.day and day.day.lower() == wanted and day.enabled:
            return day
    return None


def local_day_and_minutes(instant: datetime, zone: ZoneInfo) -> tuple[str, int]:
    """Weekday name and minutes since midnight of ``instant`` on the wall clock of ``zone``."""
    local = instant.astimezone(zone)
    return WEEKDAY_NAMES[local.weekday()], local.hour * 60 + local.minute


def work_hours_violation(
    start: datetime, duration_minutes: int, schedule: list[WorkDay], zone: ZoneInfo
) -> str | None:
    """Reason ``start`` can't hold a ``duration_minutes`` appointment, or None if it fits."""
    day_name, current = local_day_and_minutes(start, zone)
    work_day = find_work_day(schedule, day_name)
    if work_day is None:
        return f"Work day ({day_name}) is disabled."
    window = day_window(work_day)
    if window is None:
        return f"Invalid schedule hours for {day_name}."
    open_minutes, close_minutes = window
    if current < open_minutes:
        return (
            f"Start time ({current // 60:02d}:{current % 60:02d}) is before opening "
            f"({open_minutes // 60:02d}:{open_minutes % 60:02d})."
        )
    if current + duration_minutes > close_minutes:
        return "End time extends past closing."
    return None

import logging
from datetime import UTC, datetime

from dateutil.relativedelta import relativedelta

from inkbook.core.exceptions import InvalidScheduleConfiguration, ServiceExceedsCapacity, SlotSearchExhausted
from inkbook.core.timezones import utc_to_local
from inkbook.models.booking import (
    AppointmentInterval,
    Frequency,
    ProjectAvailabilityRequest,
    ProjectAvailabilityResult,
)
from inkbook.services.schedule_service import max_daily_minutes
from inkbook.services.slot_service import find_next_slot

logger = logging.getLogger(__name__)

CADENCE_STEPS: dict[Frequency, relativedelta] = {
    Frequency.SINGLE: relativedelta(days=1),
    Frequency.CONSECUTIVE: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.BIWEEKLY: relativedelta(weeks=2),
    # Clips to the last day of shorter months (Jan 31 -> Feb 28)
    Frequency.MONTHLY: relativedelta(months=1),
}


def next_search_start(slot: datetime, frequency: Frequency, time_zone: str) -> datetime:
    """Advance from a booked slot by the cadence on the provider's local calendar.

    The wall-clock time is kept, not reset to midnight, so weekly sittings stay
    at the same local hour across DST changes.
    """
    local = utc_to_local(slot, time_zone)
    return (local + CADENCE_STEPS[frequency]).astimezone(UTC)


def compute_project_dates(
    request: ProjectAvailabilityRequest, now: datetime | None = None
) -> ProjectAvailabilityResult:
    """Propose one start per sitting, earliest-fit, never overlapping each other or existing bookings."""
    schedule = request.work_schedule
    capacity = max_daily_minutes(schedule)
    if not schedule or capacity == 0:
        raise InvalidScheduleConfiguration()
    if request.service_duration_minutes > capacity:
        raise ServiceExceedsCapacity(request.service_duration_minutes, capacity)

    temp_busy = list(request.existing_appointments)
    proposed: list[datetime] = []
    search_start = request.start_date

    for index in range(request.sittings):
        try:
            slot = find_next_slot(
                search_start,
                request.service_duration_minutes,
                schedule,
                temp_busy,
                request.time_zone,
                now=now,
            )
        except SlotSearchExhausted as exc:
            raise exc.for_sitting(index + 1) from exc

        proposed.append(slot)
        temp_busy.append(
            AppointmentInterval(
                start_time=slot,
                end_time=slot + relativedelta(minutes=request.service_duration_minutes),
            )
        )
        search_start = next_search_start(slot, request.frequency, request.time_zone)

    logger.info(
        "Proposed %d sitting(s) of %d min (%s) in TZ %s",
        len(proposed),
        request.service_duration_minutes,
        request.frequency.value,
        request.time_zone,
    )
    total_cost = request.price * request.sittings if request.price is not None else None
    return ProjectAvailabilityResult(proposed_dates=proposed, total_cost=total_cost)

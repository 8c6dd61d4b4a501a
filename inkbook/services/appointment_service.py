import logging
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkbook.core.exceptions import OutsideWorkingHours, OverlapAtCommit
from inkbook.core.timezones import as_utc, get_zone, local_to_utc, to_naive_utc
from inkbook.models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from inkbook.models.booking import AppointmentInterval
from inkbook.models.provider_settings import ProviderSettings
from inkbook.services.schedule_service import normalize_schedule, work_hours_violation

logger = logging.getLogger(__name__)


async def has_overlap(
    session: AsyncSession,
    provider_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: int | None = None,
) -> bool:
    """True if any live appointment of the provider intersects [start, end)."""
    q = select(Appointment.id).where(
        Appointment.provider_id == provider_id,
        Appointment.start_time_utc < to_naive_utc(end),
        Appointment.end_time_utc > to_naive_utc(start),
        Appointment.status != AppointmentStatus.CANCELLED.value,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q.limit(1))
    return result.first() is not None


async def get_busy_intervals(
    session: AsyncSession, provider_id: str, from_time: datetime
) -> list[AppointmentInterval]:
    """Live appointments of the provider that end after ``from_time``."""
    result = await session.execute(
        select(Appointment.start_time_utc, Appointment.end_time_utc).where(
            Appointment.provider_id == provider_id,
            Appointment.end_time_utc > to_naive_utc(from_time),
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
    )
    return [
        AppointmentInterval(start_time=start, end_time=end)
        for start, end in result.all()
        if start is not None and end is not None and end > start
    ]


async def _lock_provider(session: AsyncSession, provider_id: str) -> ProviderSettings | None:
    """Serialize writers for one provider (SELECT ... FOR UPDATE; no-op on SQLite)."""
    result = await session.execute(
        select(ProviderSettings).where(ProviderSettings.provider_id == provider_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def _insert_guarded(session: AsyncSession, appointment: Appointment) -> Appointment:
    start = as_utc(appointment.start_time_utc)
    end = as_utc(appointment.end_time_utc)
    if await has_overlap(session, appointment.provider_id, start, end, exclude_appointment_id=appointment.id):
        raise OverlapAtCommit(start, end)
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as exc:
        logger.warning("Exclusion constraint rejected %s - %s for %s", start, end, appointment.provider_id)
        raise OverlapAtCommit(start, end) from exc
    await session.refresh(appointment)
    return appointment


def _build_appointment(
    provider_id: str, data: AppointmentCreate, time_zone: str
) -> Appointment:
    start = local_to_utc(data.start_time, time_zone)
    end = local_to_utc(data.end_time, time_zone)
    if end <= start:
        raise ValueError("end_time must be after start_time")
    return Appointment(
        provider_id=provider_id,
        client_id=data.client_id,
        title=data.title,
        description=data.description,
        service_name=data.service_name,
        start_time_utc=to_naive_utc(start),
        end_time_utc=to_naive_utc(end),
        time_zone=time_zone,
        price=data.price,
        deposit_amount=data.deposit_amount,
        status=AppointmentStatus.PENDING.value,
    )


async def create_appointment(
    session: AsyncSession, provider_id: str, data: AppointmentCreate, time_zone: str
) -> Appointment:
    """Single ad-hoc appointment. Naive times are read on the ``time_zone`` wall clock."""
    await _lock_provider(session, provider_id)
    appointment = _build_appointment(provider_id, data, time_zone)
    return await _insert_guarded(session, appointment)


async def book_project(
    session: AsyncSession,
    provider_id: str,
    items: list[AppointmentCreate],
    time_zone: str,
) -> list[Appointment]:
    """Persist proposed sittings, all or nothing.

    Each sitting must fall inside the provider's working hours and is
    re-checked for overlap right before insert; the caller's transaction is
    rolled back on the first failure.
    """
    provider = await _lock_provider(session, provider_id)
    schedule = normalize_schedule(provider.work_schedule) if provider else []
    zone = get_zone(time_zone)

    created: list[Appointment] = []
    for item in sorted(items, key=lambda i: local_to_utc(i.start_time, time_zone)):
        appointment = _build_appointment(provider_id, item, time_zone)
        if schedule:
            start = as_utc(appointment.start_time_utc)
            duration_minutes = int((appointment.end_time_utc - appointment.start_time_utc).total_seconds() // 60)
            reason = work_hours_violation(start, duration_minutes, schedule, zone)
            if reason:
                raise OutsideWorkingHours(f"Invalid booking time: {reason}")
        created.append(await _insert_guarded(session, appointment))
    logger.info("Booked %d sitting(s) for provider %s", len(created), provider_id)
    return created


async def reschedule_appointment(
    session: AsyncSession,
    provider_id: str,
    appointment_id: int,
    start: datetime,
    end: datetime,
    time_zone: str,
) -> Appointment | None:
    await _lock_provider(session, provider_id)
    appointment = await get_appointment(session, provider_id, appointment_id)
    if not appointment:
        return None
    new_start = local_to_utc(start, time_zone)
    new_end = local_to_utc(end, time_zone)
    if new_end <= new_start:
        raise ValueError("end_time must be after start_time")
    if await has_overlap(session, provider_id, new_start, new_end, exclude_appointment_id=appointment.id):
        raise OverlapAtCommit(new_start, new_end)
    appointment.start_time_utc = to_naive_utc(new_start)
    appointment.end_time_utc = to_naive_utc(new_end)
    appointment.time_zone = time_zone
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise OverlapAtCommit(new_start, new_end) from exc
    await session.refresh(appointment)
    return appointment


async def get_appointment(
    session: AsyncSession, provider_id: str, appointment_id: int
) -> Appointment | None:
    result = await session.execute(
        select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.provider_id == provider_id,
        )
    )
    return result.scalar_one_or_none()


async def list_appointments_for_provider(
    session: AsyncSession, provider_id: str, from_date: date | None = None
) -> list[Appointment]:
    q = (
        select(Appointment)
        .where(
            Appointment.provider_id == provider_id,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
        .order_by(Appointment.start_time_utc)
    )
    if from_date:
        start = datetime(from_date.year, from_date.month, from_date.day, 0, 0, 0)
        q = q.where(Appointment.start_time_utc >= start)
    result = await session.execute(q)
    return list(result.scalars().all())


async def cancel_appointment(session: AsyncSession, provider_id: str, appointment_id: int) -> bool:
    appointment = await get_appointment(session, provider_id, appointment_id)
    if not appointment:
        return False
    appointment.status = AppointmentStatus.CANCELLED.value
    session.add(appointment)
    await session.flush()
    return True


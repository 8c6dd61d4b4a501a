import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inkbook.api.deps import get_provider_or_404, get_session
from inkbook.api.schemas.appointment import (
    AppointmentItem,
    BookProjectRequest,
    BookProjectResponse,
    CreateAppointmentRequest,
    RescheduleAppointmentRequest,
)
from inkbook.models.appointment import Appointment, AppointmentCreate, AppointmentPublic
from inkbook.models.provider_settings import ProviderSettings
from inkbook.services.appointment_service import (
    book_project,
    cancel_appointment,
    create_appointment,
    list_appointments_for_provider,
    reschedule_appointment,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/providers/{provider_id}/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(a)


def _to_create(item: AppointmentItem) -> AppointmentCreate:
    return AppointmentCreate(**item.model_dump(include=set(AppointmentCreate.model_fields)))


def _bad_interval(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.get("", response_model=list[AppointmentPublic])
async def list_provider_appointments(
    provider_id: str,
    from_date: date | None = Query(None, alias="from_date"),
    session: AsyncSession = Depends(get_session),
) -> list[AppointmentPublic]:
    appointments = await list_appointments_for_provider(session, provider_id, from_date=from_date)
    return [_to_public(a) for a in appointments]


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_single_appointment(
    body: CreateAppointmentRequest,
    provider: ProviderSettings = Depends(get_provider_or_404),
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    """Ad-hoc appointment outside a project. 409 when the slot is taken."""
    time_zone = body.time_zone or provider.time_zone
    try:
        appointment = await create_appointment(session, provider.provider_id, _to_create(body), time_zone)
    except ValueError as exc:
        raise _bad_interval(exc) from exc
    return _to_public(appointment)


@router.post("/project", response_model=BookProjectResponse, status_code=status.HTTP_201_CREATED)
async def book_project_sittings(
    body: BookProjectRequest,
    provider: ProviderSettings = Depends(get_provider_or_404),
    session: AsyncSession = Depends(get_session),
) -> BookProjectResponse:
    """Persist proposed sittings. Any taken slot fails the whole booking with 409."""
    time_zone = body.time_zone or provider.time_zone
    try:
        created = await book_project(
            session, provider.provider_id, [_to_create(a) for a in body.appointments], time_zone
        )
    except ValueError as exc:
        raise _bad_interval(exc) from exc
    ids = [int(a.id) for a in created if a.id is not None]
    return BookProjectResponse(count=len(ids), appointment_ids=ids)


@router.patch("/{appointment_id}", response_model=AppointmentPublic)
async def reschedule(
    appointment_id: int,
    body: RescheduleAppointmentRequest,
    provider: ProviderSettings = Depends(get_provider_or_404),
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    time_zone = body.time_zone or provider.time_zone
    try:
        appointment = await reschedule_appointment(
            session, provider.provider_id, appointment_id, body.start_time, body.end_time, time_zone
        )
    except ValueError as exc:
        raise _bad_interval(exc) from exc
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    return _to_public(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel(
    provider_id: str,
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
) -> None:
    ok = await cancel_appointment(session, provider_id, appointment_id)
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )

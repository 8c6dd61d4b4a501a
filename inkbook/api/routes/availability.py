import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from inkbook.api.deps import get_provider_or_404, get_session
from inkbook.api.schemas.booking import ProjectAvailabilityQuery, ProjectAvailabilityResponse
from inkbook.core.config import settings
from inkbook.core.timezones import local_to_utc
from inkbook.models.booking import ProjectAvailabilityRequest
from inkbook.models.provider_settings import ProviderSettings
from inkbook.services.appointment_service import get_busy_intervals
from inkbook.services.project_service import compute_project_dates
from inkbook.services.schedule_service import normalize_schedule
from inkbook.services.slot_service import search_origin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["availability"])


@router.post("/{provider_id}/availability/project", response_model=ProjectAvailabilityResponse)
async def project_availability(
    body: ProjectAvailabilityQuery,
    provider: ProviderSettings = Depends(get_provider_or_404),
    session: AsyncSession = Depends(get_session),
) -> ProjectAvailabilityResponse:
    """Propose one start per sitting. Nothing is booked; POST the result to /appointments/project."""
    if body.sittings > settings.max_project_sittings:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"A project can have at most {settings.max_project_sittings} sittings.",
        )
    if body.service_duration > settings.max_service_duration_minutes:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Service duration cannot exceed {settings.max_service_duration_minutes} minutes.",
        )

    time_zone = body.time_zone or provider.time_zone
    work_schedule = normalize_schedule(provider.work_schedule)
    logger.debug(
        "Project availability for %s: %d enabled day(s), %d x %d min %s",
        provider.provider_id,
        sum(1 for d in work_schedule if d.enabled),
        body.sittings,
        body.service_duration,
        body.frequency.value,
    )
    # Naive start dates are read on the provider's wall clock
    start_date = local_to_utc(body.start_date, time_zone)
    busy = await get_busy_intervals(session, provider.provider_id, search_origin(start_date, time_zone=time_zone))

    # CPU-bound scan over up to a year of half-hour steps per sitting
    result = await run_in_threadpool(
        compute_project_dates,
        ProjectAvailabilityRequest(
            service_duration_minutes=body.service_duration,
            sittings=body.sittings,
            frequency=body.frequency,
            start_date=start_date,
            work_schedule=work_schedule,
            existing_appointments=busy,
            time_zone=time_zone,
            price=body.price,
        ),
    )
    return ProjectAvailabilityResponse(
        dates=result.proposed_dates,
        total_cost=result.total_cost,
        time_zone=time_zone,
    )

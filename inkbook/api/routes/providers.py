from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inkbook.api.deps import get_provider_or_404, get_session
from inkbook.api.schemas.booking import ProviderSettingsUpdate
from inkbook.models.provider_settings import ProviderSettings, ProviderSettingsPublic
from inkbook.services.provider_service import save_provider_settings, settings_to_public

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("/{provider_id}/settings", response_model=ProviderSettingsPublic)
async def read_settings(provider: ProviderSettings = Depends(get_provider_or_404)) -> ProviderSettingsPublic:
    return settings_to_public(provider)


@router.put("/{provider_id}/settings", response_model=ProviderSettingsPublic)
async def update_settings(
    provider_id: str,
    body: ProviderSettingsUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProviderSettingsPublic:
    """Save the weekly schedule as sent by the settings screen; the timezone is validated by the schema."""
    row = await save_provider_settings(session, provider_id, body.work_schedule, body.time_zone)
    return settings_to_public(row)

from fastapi import Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from inkbook.core.db import get_session
from inkbook.models.provider_settings import ProviderSettings
from inkbook.services.provider_service import get_provider_settings

__all__ = ["get_session", "get_provider_or_404"]


async def get_provider_or_404(
    provider_id: str = Path(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> ProviderSettings:
    """Load the provider's stored schedule/timezone; 404 until they have saved settings."""
    provider = await get_provider_settings(session, provider_id)
    if not provider:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Provider has not configured settings",
        )
    return provider

import json
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inkbook.models.provider_settings import ProviderSettings, ProviderSettingsPublic


def _utc_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


async def get_provider_settings(session: AsyncSession, provider_id: str) -> ProviderSettings | None:
    result = await session.execute(select(ProviderSettings).where(ProviderSettings.provider_id == provider_id))
    return result.scalar_one_or_none()


async def save_provider_settings(
    session: AsyncSession, provider_id: str, work_schedule: dict | list, time_zone: str
) -> ProviderSettings:
    """Upsert the raw schedule and timezone. The timezone must already be validated."""
    row = await get_provider_settings(session, provider_id)
    if row is None:
        row = ProviderSettings(provider_id=provider_id)
    row.work_schedule = json.dumps(work_schedule)
    row.time_zone = time_zone
    row.updated_at = _utc_naive()
    session.add(row)
    await session.flush()
    await session.refresh(row)
    return row


def settings_to_public(row: ProviderSettings) -> ProviderSettingsPublic:
    try:
        schedule = json.loads(row.work_schedule or "{}")
    except ValueError:
        schedule = {}
    if not isinstance(schedule, (dict, list)):
        schedule = {}
    return ProviderSettingsPublic(
        provider_id=row.provider_id,
        work_schedule=schedule,
        time_zone=row.time_zone,
        updated_at=row.updated_at,
    )

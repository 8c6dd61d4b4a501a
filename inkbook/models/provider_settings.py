from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class ProviderSettings(SQLModel, table=True):
    __tablename__ = "provider_settings"
    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(unique=True, index=True)
    # Raw JSON as saved by the settings screen: {"monday": {...}} or [{"day": ...}]
    work_schedule: str = "{}"
    time_zone: str = "UTC"
    updated_at: datetime = Field(default_factory=_utc_naive_now)


class ProviderSettingsPublic(SQLModel):
    provider_id: str
    work_schedule: dict | list
    time_zone: str
    updated_at: datetime

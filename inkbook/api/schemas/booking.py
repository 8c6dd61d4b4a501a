from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from inkbook.api.schemas.appointment import check_time_zone
from inkbook.models.booking import Frequency


class ProjectAvailabilityQuery(BaseModel):
    service_name: str | None = None
    service_duration: int = Field(gt=0)  # minutes
    sittings: int = Field(gt=0)
    frequency: Frequency = Frequency.SINGLE
    start_date: datetime
    price: float | None = None
    time_zone: str | None = None  # defaults to the provider's timezone

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str | None) -> str | None:
        return check_time_zone(value)


class ProjectAvailabilityResponse(BaseModel):
    dates: list[datetime]
    total_cost: float | None = None
    time_zone: str


class ProviderSettingsUpdate(BaseModel):
    work_schedule: dict | list
    time_zone: str = "UTC"

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str) -> str:
        return check_time_zone(value)

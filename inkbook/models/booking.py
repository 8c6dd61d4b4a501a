from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from inkbook.core.timezones import as_utc, is_valid_time_zone


class Frequency(str, Enum):
    SINGLE = "single"
    CONSECUTIVE = "consecutive"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class WorkDay(BaseModel):
    day: str
    enabled: bool = False
    start: str | None = None
    end: str | None = None


class AppointmentInterval(BaseModel):
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_order(self) -> "AppointmentInterval":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end_time and self.start_time < end


class ProjectAvailabilityRequest(BaseModel):
    service_duration_minutes: int = Field(gt=0)
    sittings: int = Field(gt=0)
    frequency: Frequency = Frequency.SINGLE
    start_date: datetime
    work_schedule: list[WorkDay] = Field(default_factory=list)
    existing_appointments: list[AppointmentInterval] = Field(default_factory=list)
    time_zone: str = "UTC"
    price: float | None = None

    @field_validator("start_date")
    @classmethod
    def start_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_time_zone(value):
            raise ValueError(f"Unknown IANA timezone: {value!r}")
        return value


class ProjectAvailabilityResult(BaseModel):
    proposed_dates: list[datetime]
    total_cost: float | None = None

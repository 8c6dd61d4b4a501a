from datetime import datetime

from pydantic import BaseModel, field_validator

from inkbook.core.timezones import is_valid_time_zone


def check_time_zone(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not is_valid_time_zone(value):
        raise ValueError(f"Unknown IANA timezone: {value!r}")
    return value


class AppointmentItem(BaseModel):
    start_time: datetime  # naive values are local to time_zone
    end_time: datetime
    title: str
    client_id: str | None = None
    description: str | None = None
    service_name: str | None = None
    price: float | None = None
    deposit_amount: float | None = None


class CreateAppointmentRequest(AppointmentItem):
    time_zone: str | None = None  # defaults to the provider's timezone

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str | None) -> str | None:
        return check_time_zone(value)


class BookProjectRequest(BaseModel):
    appointments: list[AppointmentItem]
    time_zone: str | None = None

    @field_validator("appointments")
    @classmethod
    def validate_appointments(cls, value: list[AppointmentItem]) -> list[AppointmentItem]:
        if not value:
            raise ValueError("At least one appointment is required.")
        return value

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str | None) -> str | None:
        return check_time_zone(value)


class RescheduleAppointmentRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    time_zone: str | None = None

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str | None) -> str | None:
        return check_time_zone(value)


class BookProjectResponse(BaseModel):
    count: int
    appointment_ids: list[int]

from datetime import UTC, datetime
from enum import Enum

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(index=True)
    client_id: str | None = Field(default=None, index=True)
    title: str
    description: str | None = None
    service_name: str | None = None
    # Overlap is enforced per provider by the exclusion constraint in migration 001
    start_time_utc: datetime = Field(index=True)
    end_time_utc: datetime = Field(index=True)
    time_zone: str = "UTC"
    price: float | None = None
    deposit_amount: float | None = None
    status: str = Field(default=AppointmentStatus.PENDING.value, index=True)
    created_at: datetime = Field(default_factory=_utc_naive_now)


class AppointmentCreate(SQLModel):
    start_time: datetime
    end_time: datetime
    title: str
    client_id: str | None = None
    description: str | None = None
    service_name: str | None = None
    price: float | None = None
    deposit_amount: float | None = None


class AppointmentPublic(SQLModel):
    id: int
    provider_id: str
    client_id: str | None = None
    title: str
    description: str | None = None
    service_name: str | None = None
    start_time_utc: datetime
    end_time_utc: datetime
    time_zone: str
    price: float | None = None
    deposit_amount: float | None = None
    status: str
    created_at: datetime

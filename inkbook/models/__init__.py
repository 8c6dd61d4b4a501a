from inkbook.models.appointment import Appointment, AppointmentCreate, AppointmentPublic, AppointmentStatus
from inkbook.models.booking import (
    AppointmentInterval,
    Frequency,
    ProjectAvailabilityRequest,
    ProjectAvailabilityResult,
    WorkDay,
)
from inkbook.models.provider_settings import ProviderSettings, ProviderSettingsPublic

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "AppointmentStatus",
    "AppointmentInterval",
    "Frequency",
    "ProjectAvailabilityRequest",
    "ProjectAvailabilityResult",
    "WorkDay",
    "ProviderSettings",
    "ProviderSettingsPublic",
]

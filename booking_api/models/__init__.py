"""Database models."""

from booking_api.models.appointments import (
    RELEASED_STATUSES,
    STATUS_VALUES,
    TERMINAL_STATUSES,
    UPCOMING_STATUSES,
    AppointmentStatus,
    appointments,
)
from booking_api.models.base import metadata
from booking_api.models.clinical import medical_records, prescriptions, treatments
from booking_api.models.patients import patients
from booking_api.models.practices import practices
from booking_api.models.providers import providers

__all__ = [
    "RELEASED_STATUSES",
    "STATUS_VALUES",
    "TERMINAL_STATUSES",
    "UPCOMING_STATUSES",
    "AppointmentStatus",
    "appointments",
    "medical_records",
    "metadata",
    "patients",
    "practices",
    "prescriptions",
    "providers",
    "treatments",
]

"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booking_api.models.appointments import AppointmentStatus
from booking_api.schemas.common import CamelModel

# 24-hour "HH:MM"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# Columns a partial update may change but never clear
REQUIRED_UPDATE_FIELDS = ("provider_id", "appointment_date", "start_time", "appointment_type")


def _validate_end_after_start(end: str | None, start: str | None) -> str | None:
    """Reject an end time that is not after the start time."""
    if end is not None and start is not None and end <= start:
        raise ValueError("End time must be after start time")
    return end


# ============================================================================
# Request Schemas
# ============================================================================


class AppointmentCreate(CamelModel):
    """Schema for booking a new appointment."""

    practice_id: UUID
    patient_id: UUID
    provider_id: UUID
    appointment_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN, examples=["09:00"])
    end_time: str | None = Field(None, pattern=TIME_PATTERN, examples=["09:30"])
    appointment_type: str = Field("consultation", min_length=1, max_length=50)
    reason: str | None = Field(None, max_length=500)

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: str | None, info: Any) -> str | None:
        """Validate end time is after start time."""
        return _validate_end_after_start(v, info.data.get("start_time"))


class AppointmentUpdate(CamelModel):
    """
    Schema for a partial appointment update.

    Status is not editable here; it changes through the status, cancel and
    reschedule operations. Only `endTime` and `reason` may be cleared with null.
    """

    model_config = ConfigDict(extra="forbid")

    provider_id: UUID | None = None
    appointment_date: date | None = None
    start_time: str | None = Field(None, pattern=TIME_PATTERN)
    end_time: str | None = Field(None, pattern=TIME_PATTERN)
    appointment_type: str | None = Field(None, min_length=1, max_length=50)
    reason: str | None = Field(None, max_length=500)

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: str | None, info: Any) -> str | None:
        """Validate end time is after start time when both are supplied."""
        return _validate_end_after_start(v, info.data.get("start_time"))

    @model_validator(mode="after")
    def reject_null_required(self) -> "AppointmentUpdate":
        """Reject explicit nulls for fields every appointment must have."""
        for name in REQUIRED_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class AppointmentStatusUpdate(CamelModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class ClinicalNotesCreate(CamelModel):
    """Schema for adding clinical notes."""

    notes: str = Field(..., min_length=1, max_length=5000)
    provider_id: UUID


class VitalsRecord(CamelModel):
    """Vital signs captured during an appointment."""

    blood_pressure: str | None = Field(None, pattern=r"^\d{2,3}/\d{2,3}$", examples=["120/80"])
    heart_rate: int | None = Field(None, ge=20, le=250, description="Beats per minute")
    temperature: float | None = Field(None, ge=30, le=45, description="Degrees Celsius")
    respiratory_rate: int | None = Field(None, ge=4, le=60, description="Breaths per minute")
    oxygen_saturation: float | None = Field(None, ge=50, le=100, description="SpO2 percent")
    weight: float | None = Field(None, gt=0, description="Kilograms")
    height: float | None = Field(None, gt=0, description="Centimetres")
    recorded_by: str | None = Field(None, max_length=200)
    recorded_at: datetime | None = None


class CancelRequest(CamelModel):
    """Schema for cancelling an appointment."""

    cancelled_by: str = Field(..., min_length=1, max_length=200)
    reason: str = Field(..., min_length=1, max_length=500)


class RescheduleRequest(CamelModel):
    """Schema for moving an appointment to a new slot."""

    new_date: date
    new_start_time: str = Field(..., pattern=TIME_PATTERN)
    new_end_time: str = Field(..., pattern=TIME_PATTERN)
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("new_end_time")
    @classmethod
    def validate_end_time(cls, v: str, info: Any) -> str:
        """Validate new end time is after new start time."""
        return _validate_end_after_start(v, info.data.get("new_start_time"))  # type: ignore[return-value]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    practice_id: UUID | None = None
    patient_id: UUID | None = None
    provider_id: UUID | None = None
    status: AppointmentStatus | None = None
    on_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None


# ============================================================================
# Related Entity Schemas
# ============================================================================


class PatientSummary(CamelModel):
    """Patient fields shown alongside appointments."""

    id: UUID
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    contact: dict | None = None


class PatientDetail(PatientSummary):
    """Patient fields shown on a single appointment."""

    insurance: dict | None = None
    medical_history: dict | list | None = None


class ProviderSummary(CamelModel):
    """Provider fields shown alongside appointments."""

    id: UUID
    first_name: str
    last_name: str
    title: str | None = None
    specialty: str | None = None


class ProviderDetail(ProviderSummary):
    """Provider fields shown on a single appointment."""

    contact: dict | None = None


class PracticeSummary(CamelModel):
    """Practice fields shown alongside appointments."""

    id: UUID
    practice_name: str


class PracticeDetail(PracticeSummary):
    """Practice fields shown on a single appointment."""

    contact: dict | None = None
    location: dict | None = None


class MedicalRecordResponse(CamelModel):
    """Medical record linked to an appointment."""

    id: UUID
    record_type: str
    summary: str | None = None
    data: dict | None = None
    created_at: datetime


class PrescriptionResponse(CamelModel):
    """Prescription issued during an appointment."""

    id: UUID
    medication: str
    dosage: str | None = None
    instructions: str | None = None
    created_at: datetime


class TreatmentResponse(CamelModel):
    """Treatment linked to an appointment."""

    id: UUID
    procedure: str
    notes: str | None = None
    status: str
    created_at: datetime


# ============================================================================
# Response Schemas
# ============================================================================


class ClinicalNote(CamelModel):
    """A clinical note attributed to a provider."""

    note: str
    provider_id: UUID
    added_at: datetime


class RescheduleEntry(CamelModel):
    """A previous slot of a rescheduled appointment."""

    previous_date: date
    previous_start_time: str
    previous_end_time: str | None = None
    reason: str
    rescheduled_at: datetime


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    id: UUID
    practice_id: UUID
    patient_id: UUID
    provider_id: UUID
    appointment_date: date
    start_time: str
    end_time: str | None = None
    appointment_type: str
    reason: str | None = None
    status: AppointmentStatus
    clinical_notes: list[ClinicalNote] = Field(default_factory=list)
    vitals: VitalsRecord | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    reschedule_history: list[RescheduleEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    patient: PatientSummary | None = None
    provider: ProviderSummary | None = None
    practice: PracticeSummary | None = None


class AppointmentDetailResponse(AppointmentResponse):
    """Appointment with full related entities and clinical artefacts."""

    patient: PatientDetail | None = None
    provider: ProviderDetail | None = None
    practice: PracticeDetail | None = None
    related_records: list[MedicalRecordResponse] = Field(default_factory=list)
    related_prescriptions: list[PrescriptionResponse] = Field(default_factory=list)
    related_treatments: list[TreatmentResponse] = Field(default_factory=list)


class AppointmentStatusResponse(CamelModel):
    """Status after a status update."""

    status: AppointmentStatus


class TimeSlot(CamelModel):
    """A bookable window."""

    start_time: str
    end_time: str


class AvailabilityResponse(CamelModel):
    """A provider's booked and free slots for one day."""

    on_date: date = Field(..., alias="date")
    provider_id: UUID
    provider: str
    schedule: dict | None = None
    booked_times: list[str] = Field(default_factory=list)
    available_slots: list[TimeSlot] = Field(default_factory=list)

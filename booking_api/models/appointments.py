"""Appointments table model using SQLAlchemy Core."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)

from booking_api.models.base import metadata, utcnow


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


STATUS_VALUES = tuple(s.value for s in AppointmentStatus)

# Statuses that no longer hold the provider's slot
RELEASED_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)

# Statuses with no outgoing transitions
TERMINAL_STATUSES = RELEASED_STATUSES + (AppointmentStatus.COMPLETED.value,)

# Statuses still ahead of the patient
UPCOMING_STATUSES = tuple(s for s in STATUS_VALUES if s not in TERMINAL_STATUSES)

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "practice_id",
        Uuid,
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Slot ("HH:MM", 24-hour)
    Column("appointment_date", Date, nullable=False, index=True),
    Column("start_time", String(5), nullable=False),
    Column("end_time", String(5), nullable=True),
    # Appointment details
    Column("appointment_type", String(50), nullable=False, server_default="consultation"),
    Column("reason", Text, nullable=True),
    Column("status", String(20), nullable=False, server_default="scheduled", index=True),
    # Clinical data
    Column("clinical_notes", JSON, nullable=False, default=list),
    Column("vitals", JSON, nullable=True),
    # Cancellation
    Column("cancelled_by", Text, nullable=True),
    Column("cancellation_reason", Text, nullable=True),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Reschedule history, oldest first
    Column("reschedule_history", JSON, nullable=False, default=list),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    # Constraints
    CheckConstraint(
        "status IN (" + ", ".join(f"'{s}'" for s in STATUS_VALUES) + ")",
        name="appointments_status_check",
    ),
)

# One active booking per provider slot
Index(
    "uq_appointments_provider_slot",
    appointments.c.provider_id,
    appointments.c.appointment_date,
    appointments.c.start_time,
    unique=True,
    postgresql_where=appointments.c.status.notin_(RELEASED_STATUSES),
    sqlite_where=appointments.c.status.notin_(RELEASED_STATUSES),
)

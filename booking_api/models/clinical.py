"""Clinical artefacts linked to appointments, using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)

from booking_api.models.base import metadata, utcnow

medical_records = Table(
    "medical_records",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    ),
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
    Column("record_type", String(50), nullable=False),
    Column("summary", Text),
    Column("data", JSON),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

prescriptions = Table(
    "prescriptions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    ),
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
    Column("medication", String(200), nullable=False),
    Column("dosage", String(100)),
    Column("instructions", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

treatments = Table(
    "treatments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    ),
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
    Column("procedure", String(200), nullable=False),
    Column("notes", Text),
    Column("status", String(20), nullable=False, server_default="planned"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

"""Patient model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Table,
    Uuid,
)

from booking_api.models.base import metadata, utcnow

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "practice_id",
        Uuid,
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    ),
    # Personal information
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("date_of_birth", Date),
    # Example: {"email": "...", "phone": "+1...", "address": "..."}
    Column("contact", JSON),
    # Example: {"provider": "...", "policyNumber": "..."}
    Column("insurance", JSON),
    Column("medical_history", JSON),
    # Denormalized counters derived from appointments
    Column("stats", JSON, nullable=False, default=dict),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

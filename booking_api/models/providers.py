"""Provider model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Uuid,
    text,
)

from booking_api.models.base import metadata, utcnow

providers = Table(
    "providers",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "practice_id",
        Uuid,
        ForeignKey("practices.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    ),
    # Professional details
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("title", String(50)),
    Column("specialty", String(200), index=True),
    Column("contact", JSON),
    # Weekly availability
    Column("schedule", JSON),
    # Example: {"monday": {"available": true, "start": "09:00", "end": "17:00",
    #           "breaks": [{"start": "12:00", "end": "13:00"}]}, "sunday": {"available": false}}
    Column("appointment_duration_minutes", Integer, server_default=text("30")),
    # Denormalized counters derived from appointments
    Column("stats", JSON, nullable=False, default=dict),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

"""Practice model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    String,
    Table,
    Uuid,
)

from booking_api.models.base import metadata, utcnow

practices = Table(
    "practices",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("practice_name", String(255), nullable=False, index=True),
    # Example: {"email": "front@practice.com", "phone": "+1...", "website": "https://..."}
    Column("contact", JSON),
    # Example: {"address": "...", "city": "...", "state": "...", "postalCode": "..."}
    Column("location", JSON),
    # Denormalized counters derived from appointments
    Column("stats", JSON, nullable=False, default=dict),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

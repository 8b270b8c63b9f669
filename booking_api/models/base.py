"""Shared table metadata."""

from datetime import UTC, datetime

from sqlalchemy import MetaData

# Metadata for all tables
metadata = MetaData()


def utcnow() -> datetime:
    """Current UTC time, used as the default for audit columns."""
    return datetime.now(UTC)

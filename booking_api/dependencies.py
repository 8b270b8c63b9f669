"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.redis_client import CacheManager, get_redis_client
from booking_api.database import get_db
from booking_api.services.appointment_service import AppointmentService


def get_cache_manager() -> CacheManager | None:
    """Get a cache manager backed by the shared Redis client."""
    return CacheManager(get_redis_client())


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
Cache = Annotated[CacheManager | None, Depends(get_cache_manager)]


def get_appointment_service(db: DatabaseSession, cache_manager: Cache) -> AppointmentService:
    """Get appointment service instance."""
    return AppointmentService(db, cache_manager=cache_manager)


AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]

"""Recomputation of denormalized appointment statistics."""

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Table, and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.core.redis_client import CacheManager
from booking_api.models.appointments import UPCOMING_STATUSES, AppointmentStatus, appointments
from booking_api.models.patients import patients
from booking_api.models.practices import practices
from booking_api.models.providers import providers

logger = structlog.get_logger()


class StatsService:
    """Keeps the ``stats`` structure of patients, providers and practices in sync.

    Every value is recomputed from the appointments table, so a refresh can
    be repeated safely after a partial failure.
    """

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    @staticmethod
    def provider_cache_key(provider_id: UUID) -> str:
        """Generate cache key for provider lookups."""
        return f"provider:{provider_id}"

    async def _count(self, *conditions: Any) -> int:
        stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def _merge_stats(self, table: Table, entity_id: UUID, values: dict[str, Any]) -> None:
        result = await self.db.execute(select(table.c.stats).where(table.c.id == entity_id))
        row = result.first()
        if row is None:
            return

        stats = dict(row.stats or {})
        stats.update(values)
        stats["lastUpdated"] = datetime.now(UTC).isoformat()
        await self.db.execute(update(table).where(table.c.id == entity_id).values(stats=stats))

    async def refresh_patient(self, patient_id: UUID, today: date | None = None) -> None:
        """Recompute a patient's appointment counters and next appointment date."""
        today = today or date.today()
        by_patient = appointments.c.patient_id == patient_id

        next_stmt = select(func.min(appointments.c.appointment_date)).where(
            by_patient,
            appointments.c.status.in_(UPCOMING_STATUSES),
            appointments.c.appointment_date >= today,
        )
        next_appointment = (await self.db.execute(next_stmt)).scalar()

        await self._merge_stats(
            patients,
            patient_id,
            {
                "totalAppointments": await self._count(by_patient),
                "cancelledAppointments": await self._count(
                    by_patient, appointments.c.status == AppointmentStatus.CANCELLED.value
                ),
                "noShows": await self._count(
                    by_patient, appointments.c.status == AppointmentStatus.NO_SHOW.value
                ),
                "nextAppointment": next_appointment.isoformat() if next_appointment else None,
            },
        )

    async def refresh_provider(self, provider_id: UUID) -> None:
        """Recompute a provider's non-cancelled appointment total."""
        total = await self._count(
            appointments.c.provider_id == provider_id,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
        )
        await self._merge_stats(providers, provider_id, {"totalAppointments": total})

        if self.cache:
            self.cache.delete(self.provider_cache_key(provider_id))

    async def refresh_practice(self, practice_id: UUID) -> None:
        """Recompute a practice's appointment total."""
        total = await self._count(appointments.c.practice_id == practice_id)
        await self._merge_stats(practices, practice_id, {"totalAppointments": total})

    async def refresh_for_appointment(self, appointment: dict[str, Any]) -> None:
        """
        Refresh stats of every record an appointment touches.

        Best-effort: a failure is logged and rolled back, never raised, so the
        already committed appointment change stands.

        Args:
            appointment: Appointment row with practice, patient and provider ids
        """
        try:
            await self.refresh_patient(appointment["patient_id"])
            await self.refresh_provider(appointment["provider_id"])
            await self.refresh_practice(appointment["practice_id"])
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                "stats_refresh_failed",
                appointment_id=str(appointment.get("id")),
                error=str(e),
            )

"""Appointment service for business logic."""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Table, and_, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.config import settings
from booking_api.core.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from booking_api.core.redis_client import CacheManager
from booking_api.models.appointments import RELEASED_STATUSES, appointments
from booking_api.models.clinical import medical_records, prescriptions, treatments
from booking_api.models.patients import patients
from booking_api.models.practices import practices
from booking_api.models.providers import providers
from booking_api.schemas.appointments import (
    AppointmentCreate,
    AppointmentDetailResponse,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusResponse,
    AppointmentUpdate,
    AvailabilityResponse,
    CancelRequest,
    ClinicalNote,
    ClinicalNotesCreate,
    RescheduleRequest,
    TimeSlot,
    VitalsRecord,
)
from booking_api.services import lifecycle
from booking_api.services.availability import (
    compute_available_slots,
    is_working_day,
    to_clock,
    to_minutes,
    weekday_name,
)
from booking_api.services.stats_service import StatsService

logger = structlog.get_logger()

SLOT_TAKEN = "Time slot already booked for this provider"
NEW_SLOT_TAKEN = "New time slot already booked"
PROVIDER_UNAVAILABLE = "Provider not available on this day"

# Related-entity columns returned with appointments
PATIENT_SUMMARY_FIELDS = ("id", "first_name", "last_name", "date_of_birth", "contact")
PATIENT_DETAIL_FIELDS = PATIENT_SUMMARY_FIELDS + ("insurance", "medical_history")
PROVIDER_SUMMARY_FIELDS = ("id", "first_name", "last_name", "title", "specialty")
PROVIDER_DETAIL_FIELDS = PROVIDER_SUMMARY_FIELDS + ("contact",)
PRACTICE_SUMMARY_FIELDS = ("id", "practice_name")
PRACTICE_DETAIL_FIELDS = PRACTICE_SUMMARY_FIELDS + ("contact", "location")

# Provider columns cached for slot listing
PROVIDER_SCHEDULE_FIELDS = (
    "id",
    "first_name",
    "last_name",
    "title",
    "schedule",
    "appointment_duration_minutes",
)


def _labelled(table: Table, prefix: str, fields: Sequence[str]) -> list:
    return [table.c[name].label(f"{prefix}__{name}") for name in fields]


def _nested(row: Any, prefix: str, fields: Sequence[str]) -> dict | None:
    values = {name: row[f"{prefix}__{name}"] for name in fields}
    return values if values["id"] is not None else None


def _parse_id(value: str | UUID, entity: str) -> UUID:
    """Parse an identifier; a malformed one cannot exist, so it is reported as not found."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundException(f"{entity} not found")


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager
        self.stats = StatsService(db, cache_manager)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get_row(self, appointment_id: str | UUID) -> dict[str, Any]:
        """Fetch a bare appointment row or raise NotFoundException."""
        appointment_uuid = _parse_id(appointment_id, "Appointment")
        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_uuid)
        )
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Appointment not found")
        return dict(row)

    async def _require(self, table: Table, entity_id: UUID, entity: str) -> None:
        """Raise NotFoundException naming ``entity`` unless the record exists."""
        result = await self.db.execute(select(table.c.id).where(table.c.id == entity_id))
        if result.first() is None:
            raise NotFoundException(f"{entity} not found")

    async def find_conflict(
        self,
        provider_id: UUID,
        appointment_date: date,
        start_time: str,
        exclude_id: UUID | None = None,
    ) -> dict[str, Any] | None:
        """
        Find an appointment already holding a provider's slot.

        Args:
            provider_id: Provider whose calendar is checked
            appointment_date: Day of the slot
            start_time: Slot start ("HH:MM")
            exclude_id: Appointment to ignore (the one being moved)

        Returns:
            The conflicting appointment row, or None if the slot is free
        """
        conditions = [
            appointments.c.provider_id == provider_id,
            appointments.c.appointment_date == appointment_date,
            appointments.c.start_time == start_time,
            appointments.c.status.notin_(RELEASED_STATUSES),
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        result = await self.db.execute(select(appointments).where(and_(*conditions)).limit(1))
        row = result.mappings().first()
        return dict(row) if row else None

    async def _write(
        self,
        appointment_id: UUID,
        values: dict[str, Any],
        conflict_message: str = SLOT_TAKEN,
    ) -> dict[str, Any]:
        """
        Apply an update and return the stored row.

        A unique-index violation means another booking took the slot between
        the conflict check and this write; it is reported as a conflict.
        """
        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(**values)
            .returning(appointments)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().first()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if {"provider_id", "appointment_date", "start_time", "status"} & values.keys():
                current = await self._get_row(appointment_id)
                merged = {**current, **values}
                if await self.find_conflict(
                    merged["provider_id"],
                    merged["appointment_date"],
                    merged["start_time"],
                    exclude_id=appointment_id,
                ):
                    raise ConflictException(conflict_message) from e
            raise

        if not row:
            raise NotFoundException("Appointment not found")
        return dict(row)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_appointments(self, filters: AppointmentFilters) -> list[AppointmentResponse]:
        """
        List appointments matching the filters, earliest first.

        An exact date matches ``[date, date + 1 day)`` and takes precedence
        over the inclusive ``start_date``/``end_date`` range.

        Args:
            filters: Filter parameters

        Returns:
            Appointments with summarized patient, provider and practice
        """
        conditions: list = []

        if filters.practice_id:
            conditions.append(appointments.c.practice_id == filters.practice_id)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.provider_id:
            conditions.append(appointments.c.provider_id == filters.provider_id)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.on_date:
            conditions.append(appointments.c.appointment_date >= filters.on_date)
            conditions.append(
                appointments.c.appointment_date < filters.on_date + timedelta(days=1)
            )
        else:
            if filters.start_date:
                conditions.append(appointments.c.appointment_date >= filters.start_date)
            if filters.end_date:
                conditions.append(appointments.c.appointment_date <= filters.end_date)

        stmt = (
            select(
                appointments,
                *_labelled(patients, "patient", PATIENT_SUMMARY_FIELDS),
                *_labelled(providers, "provider", PROVIDER_SUMMARY_FIELDS),
                *_labelled(practices, "practice", PRACTICE_SUMMARY_FIELDS),
            )
            .select_from(
                appointments.outerjoin(patients, appointments.c.patient_id == patients.c.id)
                .outerjoin(providers, appointments.c.provider_id == providers.c.id)
                .outerjoin(practices, appointments.c.practice_id == practices.c.id)
            )
            .where(and_(*conditions))
            .order_by(appointments.c.appointment_date.asc(), appointments.c.start_time.asc())
        )

        result = await self.db.execute(stmt)
        items = []
        for row in result.mappings().all():
            data = {name: row[name] for name in appointments.c.keys()}
            data["patient"] = _nested(row, "patient", PATIENT_SUMMARY_FIELDS)
            data["provider"] = _nested(row, "provider", PROVIDER_SUMMARY_FIELDS)
            data["practice"] = _nested(row, "practice", PRACTICE_SUMMARY_FIELDS)
            items.append(AppointmentResponse.model_validate(data))
        return items

    async def get_appointment(self, appointment_id: str | UUID) -> AppointmentDetailResponse:
        """
        Get one appointment with related entities and clinical artefacts.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment_uuid = _parse_id(appointment_id, "Appointment")
        stmt = (
            select(
                appointments,
                *_labelled(patients, "patient", PATIENT_DETAIL_FIELDS),
                *_labelled(providers, "provider", PROVIDER_DETAIL_FIELDS),
                *_labelled(practices, "practice", PRACTICE_DETAIL_FIELDS),
            )
            .select_from(
                appointments.outerjoin(patients, appointments.c.patient_id == patients.c.id)
                .outerjoin(providers, appointments.c.provider_id == providers.c.id)
                .outerjoin(practices, appointments.c.practice_id == practices.c.id)
            )
            .where(appointments.c.id == appointment_uuid)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Appointment not found")

        data = {name: row[name] for name in appointments.c.keys()}
        data["patient"] = _nested(row, "patient", PATIENT_DETAIL_FIELDS)
        data["provider"] = _nested(row, "provider", PROVIDER_DETAIL_FIELDS)
        data["practice"] = _nested(row, "practice", PRACTICE_DETAIL_FIELDS)

        for key, table in (
            ("related_records", medical_records),
            ("related_prescriptions", prescriptions),
            ("related_treatments", treatments),
        ):
            related = await self.db.execute(
                select(table)
                .where(table.c.appointment_id == appointment_uuid)
                .order_by(table.c.created_at)
            )
            data[key] = [dict(r) for r in related.mappings().all()]

        return AppointmentDetailResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_appointment(self, data: AppointmentCreate) -> AppointmentResponse:
        """
        Book a new appointment.

        Practice, patient and provider are checked in that order; the first
        missing one is reported. The provider's slot must be free.

        Args:
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            NotFoundException: If a referenced record does not exist
            ConflictException: If the provider's slot is already booked
        """
        await self._require(practices, data.practice_id, "Practice")
        await self._require(patients, data.patient_id, "Patient")
        await self._require(providers, data.provider_id, "Provider")

        if await self.find_conflict(data.provider_id, data.appointment_date, data.start_time):
            raise ConflictException(SLOT_TAKEN)

        values = data.model_dump()
        values["status"] = AppointmentStatus.SCHEDULED.value

        stmt = insert(appointments).values(**values).returning(appointments)
        try:
            result = await self.db.execute(stmt)
            row = dict(result.mappings().one())
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if await self.find_conflict(data.provider_id, data.appointment_date, data.start_time):
                raise ConflictException(SLOT_TAKEN) from e
            raise

        logger.info(
            "appointment_created",
            appointment_id=str(row["id"]),
            provider_id=str(row["provider_id"]),
            appointment_date=row["appointment_date"].isoformat(),
            start_time=row["start_time"],
        )

        await self.stats.refresh_for_appointment(row)
        return AppointmentResponse.model_validate(row)

    async def update_appointment(
        self, appointment_id: str | UUID, data: AppointmentUpdate
    ) -> AppointmentResponse:
        """
        Merge the supplied fields into an appointment.

        Moving the appointment (provider, date or start time) re-runs the
        conflict check, ignoring the appointment itself. A new start time
        without a new end time keeps the stored duration. ``endTime`` and
        ``reason`` are cleared by an explicit null. Status is never changed
        here.

        Raises:
            NotFoundException: If the appointment or new provider does not exist
            BadRequestException: If the merged end time is not after the start time
            ConflictException: If the resulting slot is already booked
        """
        current = await self._get_row(appointment_id)

        update_values = data.model_dump(exclude_unset=True)
        if not update_values:
            return AppointmentResponse.model_validate(current)

        if "provider_id" in update_values:
            await self._require(providers, update_values["provider_id"], "Provider")

        if (
            "start_time" in update_values
            and "end_time" not in update_values
            and current["end_time"]
        ):
            duration = to_minutes(current["end_time"]) - to_minutes(current["start_time"])
            shifted = to_minutes(update_values["start_time"]) + duration
            if shifted >= 24 * 60:
                raise BadRequestException("End time must be after start time")
            update_values["end_time"] = to_clock(shifted)

        merged = {**current, **update_values}
        if merged["end_time"] and merged["end_time"] <= merged["start_time"]:
            raise BadRequestException("End time must be after start time")

        moved = bool({"provider_id", "appointment_date", "start_time"} & update_values.keys())
        if moved and merged["status"] not in RELEASED_STATUSES:
            if await self.find_conflict(
                merged["provider_id"],
                merged["appointment_date"],
                merged["start_time"],
                exclude_id=current["id"],
            ):
                raise ConflictException(SLOT_TAKEN)

        update_values["updated_at"] = datetime.now(UTC)
        row = await self._write(current["id"], update_values)

        logger.info(
            "appointment_updated",
            appointment_id=str(row["id"]),
            fields=sorted(k for k in update_values if k != "updated_at"),
        )

        await self.stats.refresh_for_appointment(row)
        if row["provider_id"] != current["provider_id"]:
            await self.stats.refresh_for_appointment(current)
        return AppointmentResponse.model_validate(row)

    async def update_status(
        self, appointment_id: str | UUID, target: AppointmentStatus
    ) -> AppointmentStatusResponse:
        """
        Move an appointment to a new status.

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the transition is not allowed
        """
        current = await self._get_row(appointment_id)
        values = lifecycle.transition_status(current, target)
        if not values:
            return AppointmentStatusResponse(status=current["status"])

        row = await self._write(current["id"], values)

        logger.info(
            "appointment_status_changed",
            appointment_id=str(row["id"]),
            old_status=current["status"],
            new_status=row["status"],
        )

        await self.stats.refresh_for_appointment(row)
        return AppointmentStatusResponse(status=row["status"])

    async def add_clinical_notes(
        self, appointment_id: str | UUID, data: ClinicalNotesCreate
    ) -> list[ClinicalNote]:
        """Append a provider's clinical note and return all notes."""
        current = await self._get_row(appointment_id)
        row = await self._write(
            current["id"],
            lifecycle.add_clinical_note(current, data.notes, data.provider_id),
        )
        logger.info("clinical_notes_added", appointment_id=str(row["id"]))
        return [ClinicalNote.model_validate(note) for note in row["clinical_notes"]]

    async def record_vitals(self, appointment_id: str | UUID, vitals: VitalsRecord) -> VitalsRecord:
        """Merge vitals into the appointment and return the stored vitals."""
        current = await self._get_row(appointment_id)
        row = await self._write(current["id"], lifecycle.record_vitals(current, vitals))
        logger.info("vitals_recorded", appointment_id=str(row["id"]))
        return VitalsRecord.model_validate(row["vitals"])

    async def cancel_appointment(
        self, appointment_id: str | UUID, data: CancelRequest
    ) -> AppointmentResponse:
        """
        Cancel an appointment and refresh the patient's cancellation count.

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the appointment cannot be cancelled
        """
        current = await self._get_row(appointment_id)
        row = await self._write(
            current["id"],
            lifecycle.cancel(current, data.cancelled_by, data.reason),
        )

        logger.info(
            "appointment_cancelled",
            appointment_id=str(row["id"]),
            cancelled_by=data.cancelled_by,
        )

        await self.stats.refresh_for_appointment(row)
        return AppointmentResponse.model_validate(row)

    async def reschedule_appointment(
        self, appointment_id: str | UUID, data: RescheduleRequest
    ) -> AppointmentResponse:
        """
        Move an appointment to a new slot with the same provider.

        The appointment's own slot never counts as a conflict, so it may be
        rescheduled onto its current time.

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the appointment cannot be rescheduled
            ConflictException: If another appointment holds the new slot
        """
        current = await self._get_row(appointment_id)
        values = lifecycle.reschedule(
            current, data.new_date, data.new_start_time, data.new_end_time, data.reason
        )

        if await self.find_conflict(
            current["provider_id"],
            data.new_date,
            data.new_start_time,
            exclude_id=current["id"],
        ):
            raise ConflictException(NEW_SLOT_TAKEN)

        row = await self._write(current["id"], values, conflict_message=NEW_SLOT_TAKEN)

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(row["id"]),
            new_date=data.new_date.isoformat(),
            new_start_time=data.new_start_time,
        )

        await self.stats.refresh_for_appointment(row)
        return AppointmentResponse.model_validate(row)

    async def delete_appointment(self, appointment_id: str | UUID) -> None:
        """
        Permanently delete an appointment, bypassing lifecycle rules.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment_uuid = _parse_id(appointment_id, "Appointment")
        stmt = (
            delete(appointments)
            .where(appointments.c.id == appointment_uuid)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if not row:
            await self.db.rollback()
            raise NotFoundException("Appointment not found")

        deleted = dict(row)
        await self.db.commit()

        logger.info("appointment_deleted", appointment_id=str(deleted["id"]))
        await self.stats.refresh_for_appointment(deleted)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def _get_provider_schedule(self, provider_id: UUID) -> dict[str, Any] | None:
        """Get a provider's name and schedule, cached."""
        cache_key = StatsService.provider_cache_key(provider_id)
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached:
                return cached

        result = await self.db.execute(
            select(*[providers.c[name] for name in PROVIDER_SCHEDULE_FIELDS]).where(
                providers.c.id == provider_id
            )
        )
        row = result.mappings().first()
        if not row:
            return None

        provider = dict(row)
        if self.cache:
            self.cache.set_json(cache_key, provider, ttl=settings.provider_cache_ttl)
        return provider

    async def get_available_slots(
        self, provider_id: str | UUID, on_date: date
    ) -> tuple[AvailabilityResponse, str]:
        """
        List a provider's booked start times and free slots for a day.

        Args:
            provider_id: Provider ID
            on_date: Day to inspect

        Returns:
            Availability and a message describing it

        Raises:
            NotFoundException: If provider not found
        """
        provider_uuid = _parse_id(provider_id, "Provider")
        provider = await self._get_provider_schedule(provider_uuid)
        if not provider:
            raise NotFoundException("Provider not found")

        full_name = " ".join(
            part for part in (provider["title"], provider["first_name"], provider["last_name"]) if part
        )
        day_schedule = (provider.get("schedule") or {}).get(weekday_name(on_date))

        if not is_working_day(day_schedule):
            return (
                AvailabilityResponse(
                    on_date=on_date,
                    provider_id=provider_uuid,
                    provider=full_name,
                    schedule=day_schedule,
                ),
                PROVIDER_UNAVAILABLE,
            )

        result = await self.db.execute(
            select(appointments.c.start_time, appointments.c.end_time)
            .where(
                appointments.c.provider_id == provider_uuid,
                appointments.c.appointment_date >= on_date,
                appointments.c.appointment_date < on_date + timedelta(days=1),
                appointments.c.status.notin_(RELEASED_STATUSES),
            )
            .order_by(appointments.c.start_time)
        )
        booked = [(row.start_time, row.end_time) for row in result.all()]

        slot_minutes = provider.get("appointment_duration_minutes") or settings.default_slot_minutes
        slots = compute_available_slots(day_schedule, booked, slot_minutes)

        return (
            AvailabilityResponse(
                on_date=on_date,
                provider_id=provider_uuid,
                provider=full_name,
                schedule=day_schedule,
                booked_times=[start for start, _ in booked],
                available_slots=[TimeSlot.model_validate(slot) for slot in slots],
            ),
            f"{len(slots)} slot(s) available",
        )

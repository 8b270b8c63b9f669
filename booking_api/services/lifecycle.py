"""Appointment lifecycle rules.

Pure functions over an appointment row (a mapping of column values). Each
returns the column values to write; persistence is left to the caller.
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from booking_api.core.exceptions import InvalidTransitionException
from booking_api.models.appointments import RELEASED_STATUSES, TERMINAL_STATUSES, AppointmentStatus
from booking_api.schemas.appointments import VitalsRecord

RELEASED = frozenset(AppointmentStatus(s) for s in RELEASED_STATUSES)
TERMINAL = frozenset(AppointmentStatus(s) for s in TERMINAL_STATUSES)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CHECKED_IN,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.CHECKED_IN,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CHECKED_IN: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def _now() -> datetime:
    return datetime.now(UTC)


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Whether ``current`` may move to ``target``. Same-status moves are allowed."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


def transition_status(appointment: Mapping[str, Any], target: AppointmentStatus) -> dict[str, Any]:
    """
    Compute the update for a status change.

    Args:
        appointment: Current appointment row
        target: Requested status

    Returns:
        Column values to write (empty for a same-status request)

    Raises:
        InvalidTransitionException: If the transition is not allowed
    """
    current = AppointmentStatus(appointment["status"])
    if not can_transition(current, target):
        raise InvalidTransitionException(
            f"Cannot change appointment status from '{current.value}' to '{target.value}'"
        )
    if current == target:
        return {}

    values: dict[str, Any] = {"status": target.value, "updated_at": _now()}
    if target == AppointmentStatus.CANCELLED:
        values["cancelled_at"] = values["updated_at"]
    return values


def cancel(appointment: Mapping[str, Any], cancelled_by: str, reason: str) -> dict[str, Any]:
    """
    Compute the update that cancels an appointment.

    Raises:
        InvalidTransitionException: If the appointment is already cancelled,
            completed or marked as a no-show
    """
    current = AppointmentStatus(appointment["status"])
    if current == AppointmentStatus.CANCELLED:
        raise InvalidTransitionException("Appointment is already cancelled")
    if current in TERMINAL:
        raise InvalidTransitionException(f"Cannot cancel an appointment with status '{current.value}'")

    now = _now()
    return {
        "status": AppointmentStatus.CANCELLED.value,
        "cancelled_by": cancelled_by,
        "cancellation_reason": reason,
        "cancelled_at": now,
        "updated_at": now,
    }


def reschedule(
    appointment: Mapping[str, Any],
    new_date: date,
    new_start_time: str,
    new_end_time: str | None,
    reason: str,
) -> dict[str, Any]:
    """
    Compute the update that moves an appointment to a new slot.

    The previous slot is appended to the reschedule history and the status
    returns to ``scheduled``.

    Raises:
        InvalidTransitionException: If the appointment is cancelled,
            completed or marked as a no-show
    """
    current = AppointmentStatus(appointment["status"])
    if current in TERMINAL:
        raise InvalidTransitionException(
            f"Cannot reschedule an appointment with status '{current.value}'"
        )

    now = _now()
    previous_date = appointment["appointment_date"]
    history = list(appointment.get("reschedule_history") or [])
    history.append(
        {
            "previous_date": previous_date.isoformat()
            if isinstance(previous_date, date)
            else previous_date,
            "previous_start_time": appointment["start_time"],
            "previous_end_time": appointment.get("end_time"),
            "reason": reason,
            "rescheduled_at": now.isoformat(),
        }
    )
    return {
        "appointment_date": new_date,
        "start_time": new_start_time,
        "end_time": new_end_time,
        "status": AppointmentStatus.SCHEDULED.value,
        "reschedule_history": history,
        "updated_at": now,
    }


def add_clinical_note(
    appointment: Mapping[str, Any], note: str, provider_id: UUID
) -> dict[str, Any]:
    """Compute the update that appends a clinical note."""
    notes = list(appointment.get("clinical_notes") or [])
    now = _now()
    notes.append(
        {
            "note": note,
            "provider_id": str(provider_id),
            "added_at": now.isoformat(),
        }
    )
    return {"clinical_notes": notes, "updated_at": now}


def record_vitals(appointment: Mapping[str, Any], vitals: VitalsRecord) -> dict[str, Any]:
    """
    Compute the update that merges new vitals over the stored ones.

    Fields omitted from ``vitals`` keep their previous values.
    """
    now = _now()
    merged = dict(appointment.get("vitals") or {})
    merged.update(vitals.model_dump(mode="json", exclude_none=True, exclude={"recorded_at"}))
    merged["recorded_at"] = now.isoformat()
    return {"vitals": merged, "updated_at": now}

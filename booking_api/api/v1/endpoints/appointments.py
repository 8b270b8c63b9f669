"""Appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from booking_api.core.exceptions import BadRequestException
from booking_api.dependencies import AppointmentServiceDep
from booking_api.middleware.error_handler import handle_operation_errors
from booking_api.schemas.appointments import (
    AppointmentCreate,
    AppointmentDetailResponse,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    AvailabilityResponse,
    CancelRequest,
    ClinicalNote,
    ClinicalNotesCreate,
    RescheduleRequest,
    VitalsRecord,
)
from booking_api.schemas.common import (
    DataEnvelope,
    ErrorEnvelope,
    ListEnvelope,
    MessageDataEnvelope,
    MessageEnvelope,
)

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorEnvelope, "description": "Appointment not found"}}
BAD_REQUEST = {400: {"model": ErrorEnvelope, "description": "Validation failed or slot taken"}}


@router.get(
    "/",
    response_model=ListEnvelope[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
@handle_operation_errors("Failed to fetch appointments")
async def list_appointments(
    service: AppointmentServiceDep,
    practice_id: UUID | None = Query(None, alias="practiceId"),
    patient_id: UUID | None = Query(None, alias="patientId"),
    provider_id: UUID | None = Query(None, alias="providerId"),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    on_date: date | None = Query(None, alias="date", description="Exact day"),
    start_date: date | None = Query(None, alias="startDate", description="Range start (inclusive)"),
    end_date: date | None = Query(None, alias="endDate", description="Range end (inclusive)"),
) -> ListEnvelope[AppointmentResponse]:
    """
    List appointments sorted by date and start time.

    - **practiceId / patientId / providerId**: Filter by related record
    - **status**: Filter by status
    - **date**: Exact day; takes precedence over the range
    - **startDate / endDate**: Inclusive date range
    """
    filters = AppointmentFilters(
        practice_id=practice_id,
        patient_id=patient_id,
        provider_id=provider_id,
        status=status_filter,
        on_date=on_date,
        start_date=start_date,
        end_date=end_date,
    )
    items = await service.list_appointments(filters)
    return ListEnvelope[AppointmentResponse](count=len(items), data=items)


@router.get(
    "/available-slots/{provider_id}",
    response_model=MessageDataEnvelope[AvailabilityResponse],
    status_code=status.HTTP_200_OK,
    responses={404: {"model": ErrorEnvelope, "description": "Provider not found"}, **BAD_REQUEST},
    summary="Available time slots for a provider",
)
@handle_operation_errors("Failed to fetch available slots")
async def get_available_slots(
    provider_id: str,
    service: AppointmentServiceDep,
    on_date: date | None = Query(None, alias="date"),
) -> MessageDataEnvelope[AvailabilityResponse]:
    """
    Get a provider's booked times and free slots for one day.

    A day the provider's weekly schedule marks unavailable yields an empty
    slot list and an explanatory message.
    """
    if on_date is None:
        raise BadRequestException("Date is required")

    availability, message = await service.get_available_slots(provider_id, on_date)
    return MessageDataEnvelope[AvailabilityResponse](message=message, data=availability)


@router.get(
    "/{appointment_id}",
    response_model=DataEnvelope[AppointmentDetailResponse],
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND,
    summary="Get appointment by ID",
)
@handle_operation_errors("Failed to fetch appointment")
async def get_appointment(
    appointment_id: str,
    service: AppointmentServiceDep,
) -> DataEnvelope[AppointmentDetailResponse]:
    """Get an appointment with patient, provider, practice and clinical records."""
    appointment = await service.get_appointment(appointment_id)
    return DataEnvelope[AppointmentDetailResponse](data=appointment)


@router.post(
    "/",
    response_model=MessageDataEnvelope[AppointmentResponse],
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **BAD_REQUEST},
    summary="Create new appointment",
)
@handle_operation_errors("Failed to create appointment")
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[AppointmentResponse]:
    """
    Book an appointment.

    Practice, patient and provider must exist, and the provider must not
    already have an active appointment starting at the same date and time.
    """
    appointment = await service.create_appointment(data)
    return MessageDataEnvelope[AppointmentResponse](
        message="Appointment created successfully",
        data=appointment,
    )


@router.put(
    "/{appointment_id}",
    response_model=MessageDataEnvelope[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    responses={**NOT_FOUND, **BAD_REQUEST},
    summary="Update appointment",
)
@handle_operation_errors("Failed to update appointment")
async def update_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[AppointmentResponse]:
    """Update the supplied fields of an appointment."""
    appointment = await service.update_appointment(appointment_id, data)
    return MessageDataEnvelope[AppointmentResponse](
        message="Appointment updated successfully",
        data=appointment,
    )


@router.patch(
    "/{appointment_id}/status",
    response_model=MessageDataEnvelope[AppointmentStatusResponse],
    status_code=status.HTTP_200_OK,
    responses={**NOT_FOUND, **BAD_REQUEST},
    summary="Update appointment status",
)
@handle_operation_errors("Failed to update status")
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[AppointmentStatusResponse]:
    """Move an appointment to a new status (e.g. confirm, check in, complete)."""
    result = await service.update_status(appointment_id, data.status)
    return MessageDataEnvelope[AppointmentStatusResponse](
        message="Appointment status updated",
        data=result,
    )


@router.post(
    "/{appointment_id}/clinical-notes",
    response_model=MessageDataEnvelope[list[ClinicalNote]],
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND,
    summary="Add clinical notes",
)
@handle_operation_errors("Failed to add clinical notes")
async def add_clinical_notes(
    appointment_id: str,
    data: ClinicalNotesCreate,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[list[ClinicalNote]]:
    """Append a clinical note attributed to a provider."""
    notes = await service.add_clinical_notes(appointment_id, data)
    return MessageDataEnvelope[list[ClinicalNote]](message="Clinical notes added", data=notes)


@router.post(
    "/{appointment_id}/vitals",
    response_model=MessageDataEnvelope[VitalsRecord],
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND,
    summary="Record vitals",
)
@handle_operation_errors("Failed to record vitals")
async def record_vitals(
    appointment_id: str,
    data: VitalsRecord,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[VitalsRecord]:
    """Record vital signs; omitted measurements keep their previous values."""
    vitals = await service.record_vitals(appointment_id, data)
    return MessageDataEnvelope[VitalsRecord](message="Vitals recorded", data=vitals)


@router.post(
    "/{appointment_id}/cancel",
    response_model=MessageDataEnvelope[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    responses={**NOT_FOUND, **BAD_REQUEST},
    summary="Cancel appointment",
)
@handle_operation_errors("Failed to cancel appointment")
async def cancel_appointment(
    appointment_id: str,
    data: CancelRequest,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[AppointmentResponse]:
    """Cancel an appointment, recording who cancelled it and why."""
    appointment = await service.cancel_appointment(appointment_id, data)
    return MessageDataEnvelope[AppointmentResponse](
        message="Appointment cancelled",
        data=appointment,
    )


@router.post(
    "/{appointment_id}/reschedule",
    response_model=MessageDataEnvelope[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    responses={**NOT_FOUND, **BAD_REQUEST},
    summary="Reschedule appointment",
)
@handle_operation_errors("Failed to reschedule appointment")
async def reschedule_appointment(
    appointment_id: str,
    data: RescheduleRequest,
    service: AppointmentServiceDep,
) -> MessageDataEnvelope[AppointmentResponse]:
    """Move an appointment to a new date and time with the same provider."""
    appointment = await service.reschedule_appointment(appointment_id, data)
    return MessageDataEnvelope[AppointmentResponse](
        message="Appointment rescheduled",
        data=appointment,
    )


@router.delete(
    "/{appointment_id}",
    response_model=MessageEnvelope,
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND,
    summary="Delete appointment",
)
@handle_operation_errors("Failed to delete appointment")
async def delete_appointment(
    appointment_id: str,
    service: AppointmentServiceDep,
) -> MessageEnvelope:
    """Permanently delete an appointment."""
    await service.delete_appointment(appointment_id)
    return MessageEnvelope(message="Appointment deleted successfully")

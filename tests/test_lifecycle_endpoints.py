"""Tests for status, notes, vitals, cancel and reschedule endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

URL = "/api/v1/appointments"


@pytest.mark.asyncio
async def test_status_workflow(client: AsyncClient, created_appointment: dict) -> None:
    """Test walking an appointment from scheduled to completed."""
    appointment_id = created_appointment["id"]

    for target in ("confirmed", "checked-in", "in-progress", "completed"):
        response = await client.patch(f"{URL}/{appointment_id}/status", json={"status": target})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Appointment status updated"
        assert body["data"] == {"status": target}

    response = await client.get(f"{URL}/{appointment_id}")
    assert response.json()["data"]["status"] == "completed"


@pytest.mark.asyncio
async def test_invalid_status_transition(client: AsyncClient, created_appointment: dict) -> None:
    """Test skipping the workflow is refused."""
    response = await client.patch(
        f"{URL}/{created_appointment['id']}/status", json={"status": "completed"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot change appointment status from 'scheduled' to 'completed'"


@pytest.mark.asyncio
async def test_unknown_status_value(client: AsyncClient, created_appointment: dict) -> None:
    response = await client.patch(
        f"{URL}/{created_appointment['id']}/status", json={"status": "finished"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


@pytest.mark.asyncio
async def test_status_missing_appointment(client: AsyncClient) -> None:
    response = await client.patch(f"{URL}/{uuid4()}/status", json={"status": "confirmed"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_add_clinical_notes(
    client: AsyncClient, created_appointment: dict, provider: dict
) -> None:
    """Test notes accumulate in order."""
    url = f"{URL}/{created_appointment['id']}/clinical-notes"
    await client.post(url, json={"notes": "Presents with cough", "providerId": str(provider["id"])})
    response = await client.post(
        url, json={"notes": "Prescribed rest", "providerId": str(provider["id"])}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Clinical notes added"
    assert [n["note"] for n in body["data"]] == ["Presents with cough", "Prescribed rest"]
    assert body["data"][0]["providerId"] == str(provider["id"])
    assert "addedAt" in body["data"][0]


@pytest.mark.asyncio
async def test_clinical_notes_require_text(
    client: AsyncClient, created_appointment: dict, provider: dict
) -> None:
    response = await client.post(
        f"{URL}/{created_appointment['id']}/clinical-notes",
        json={"notes": "", "providerId": str(provider["id"])},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_record_vitals_merges(client: AsyncClient, created_appointment: dict) -> None:
    """Test a second vitals reading keeps unrelated measurements."""
    url = f"{URL}/{created_appointment['id']}/vitals"
    first = await client.post(url, json={"bloodPressure": "120/80", "heartRate": 72})
    assert first.status_code == 200
    assert first.json()["message"] == "Vitals recorded"

    second = await client.post(url, json={"heartRate": 90, "temperature": 37.8})
    vitals = second.json()["data"]
    assert vitals["bloodPressure"] == "120/80"
    assert vitals["heartRate"] == 90
    assert vitals["temperature"] == 37.8
    assert vitals["recordedAt"] is not None


@pytest.mark.asyncio
async def test_record_vitals_out_of_range(client: AsyncClient, created_appointment: dict) -> None:
    response = await client.post(
        f"{URL}/{created_appointment['id']}/vitals", json={"heartRate": 900}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cancel_appointment(client: AsyncClient, created_appointment: dict) -> None:
    """Test cancelling records who, why and when."""
    response = await client.post(
        f"{URL}/{created_appointment['id']}/cancel",
        json={"cancelledBy": "patient", "reason": "Feeling better"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Appointment cancelled"
    assert body["data"]["status"] == "cancelled"
    assert body["data"]["cancelledBy"] == "patient"
    assert body["data"]["cancellationReason"] == "Feeling better"
    assert body["data"]["cancelledAt"] is not None


@pytest.mark.asyncio
async def test_cancel_requires_reason(client: AsyncClient, created_appointment: dict) -> None:
    response = await client.post(
        f"{URL}/{created_appointment['id']}/cancel", json={"cancelledBy": "patient"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


@pytest.mark.asyncio
async def test_cancel_twice(client: AsyncClient, created_appointment: dict) -> None:
    """Test an appointment cannot be cancelled again."""
    url = f"{URL}/{created_appointment['id']}/cancel"
    payload = {"cancelledBy": "patient", "reason": "Feeling better"}
    assert (await client.post(url, json=payload)).status_code == 200

    response = await client.post(url, json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Appointment is already cancelled"


@pytest.mark.asyncio
async def test_reschedule_appointment(client: AsyncClient, created_appointment: dict) -> None:
    """Test moving to a free slot records the previous one."""
    response = await client.post(
        f"{URL}/{created_appointment['id']}/reschedule",
        json={
            "newDate": "2030-01-08",
            "newStartTime": "11:00",
            "newEndTime": "11:30",
            "reason": "Provider running late",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Appointment rescheduled"
    data = body["data"]
    assert data["appointmentDate"] == "2030-01-08"
    assert data["startTime"] == "11:00"
    assert data["endTime"] == "11:30"
    assert data["status"] == "scheduled"
    assert data["rescheduleHistory"][0]["previousDate"] == "2030-01-07"
    assert data["rescheduleHistory"][0]["previousStartTime"] == "09:00"
    assert data["rescheduleHistory"][0]["reason"] == "Provider running late"

    # The old slot is free again
    slots = await client.get(
        f"{URL}/available-slots/{created_appointment['providerId']}", params={"date": "2030-01-07"}
    )
    assert "09:00" not in slots.json()["data"]["bookedTimes"]


@pytest.mark.asyncio
async def test_reschedule_into_taken_slot(
    client: AsyncClient, appointment_payload, created_appointment: dict
) -> None:
    """Test moving onto another appointment's slot is refused."""
    other = await client.post(
        f"{URL}/", json=appointment_payload(startTime="10:00", endTime="10:30")
    )

    response = await client.post(
        f"{URL}/{other.json()['data']['id']}/reschedule",
        json={
            "newDate": "2030-01-07",
            "newStartTime": "09:00",
            "newEndTime": "09:30",
            "reason": "Earlier is better",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "New time slot already booked"


@pytest.mark.asyncio
async def test_reschedule_onto_own_slot(client: AsyncClient, created_appointment: dict) -> None:
    """Test an appointment never conflicts with itself."""
    response = await client.post(
        f"{URL}/{created_appointment['id']}/reschedule",
        json={
            "newDate": "2030-01-07",
            "newStartTime": "09:00",
            "newEndTime": "09:45",
            "reason": "Longer visit",
        },
    )
    assert response.status_code == 200
    assert response.json()["data"]["endTime"] == "09:45"
    assert len(response.json()["data"]["rescheduleHistory"]) == 1


@pytest.mark.asyncio
async def test_reschedule_cancelled_appointment(
    client: AsyncClient, created_appointment: dict
) -> None:
    await client.post(
        f"{URL}/{created_appointment['id']}/cancel",
        json={"cancelledBy": "clinic", "reason": "Provider ill"},
    )

    response = await client.post(
        f"{URL}/{created_appointment['id']}/reschedule",
        json={
            "newDate": "2030-01-08",
            "newStartTime": "09:00",
            "newEndTime": "09:30",
            "reason": "Try again",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot reschedule an appointment with status 'cancelled'"

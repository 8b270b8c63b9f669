"""Tests for provider availability."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from booking_api.services.availability import (
    compute_available_slots,
    free_windows,
    weekday_name,
)
from tests.conftest import MONDAY, SUNDAY, WEDNESDAY

MORNING = {"available": True, "start": "09:00", "end": "12:00"}


def starts(slots: list[dict]) -> list[str]:
    return [slot["start_time"] for slot in slots]


# ============================================================================
# Slot computation
# ============================================================================


def test_weekday_name() -> None:
    assert weekday_name(MONDAY) == "monday"
    assert weekday_name(SUNDAY) == "sunday"


def test_free_windows_subtracts_overlapping_intervals() -> None:
    """Test busy intervals are merged before subtraction."""
    assert free_windows(540, 720, [(600, 630), (620, 660), (700, 800)]) == [
        (540, 600),
        (660, 700),
    ]
    assert free_windows(540, 720, []) == [(540, 720)]
    assert free_windows(540, 720, [(500, 800)]) == []


def test_empty_day_is_fully_bookable() -> None:
    slots = compute_available_slots(MORNING, [], 30)
    assert starts(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
    assert slots[-1] == {"start_time": "11:30", "end_time": "12:00"}


def test_booked_and_break_intervals_excluded() -> None:
    """Test bookings and breaks are removed from the working window."""
    day = {**MORNING, "breaks": [{"start": "10:00", "end": "10:30"}]}
    slots = compute_available_slots(day, [("09:00", "09:30"), ("11:00", None)], 30)
    assert starts(slots) == ["09:30", "10:30", "11:30"]


def test_slots_restart_after_uneven_booking() -> None:
    """Test slots start from the beginning of each free window."""
    slots = compute_available_slots(MORNING, [("09:00", "09:45")], 30)
    assert starts(slots) == ["09:45", "10:15", "10:45", "11:15"]


def test_slot_length_follows_provider() -> None:
    assert starts(compute_available_slots(MORNING, [], 60)) == ["09:00", "10:00", "11:00"]


def test_unavailable_day_has_no_slots() -> None:
    assert compute_available_slots({"available": False}, [], 30) == []
    assert compute_available_slots({}, [], 30) == []


# ============================================================================
# Endpoint
# ============================================================================


@pytest.mark.asyncio
async def test_available_slots(
    client: AsyncClient, provider: dict, created_appointment: dict
) -> None:
    """Test booked times are listed and excluded from free slots."""
    response = await client.get(
        f"/api/v1/appointments/available-slots/{provider['id']}",
        params={"date": MONDAY.isoformat()},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "5 slot(s) available"

    data = body["data"]
    assert data["date"] == MONDAY.isoformat()
    assert data["providerId"] == str(provider["id"])
    assert data["provider"] == "Dr. Gregory House"
    assert data["schedule"]["start"] == "09:00"
    assert data["bookedTimes"] == ["09:00"]
    assert [slot["startTime"] for slot in data["availableSlots"]] == [
        "09:30",
        "10:00",
        "10:30",
        "11:00",
        "11:30",
    ]


@pytest.mark.asyncio
async def test_available_slots_skip_break(client: AsyncClient, provider: dict) -> None:
    response = await client.get(
        f"/api/v1/appointments/available-slots/{provider['id']}",
        params={"date": WEDNESDAY.isoformat()},
    )
    starts_ = [slot["startTime"] for slot in response.json()["data"]["availableSlots"]]
    assert "10:00" not in starts_
    assert starts_ == ["09:00", "09:30", "10:30", "11:00", "11:30"]


@pytest.mark.asyncio
async def test_available_slots_ignore_cancelled(
    client: AsyncClient, provider: dict, created_appointment: dict
) -> None:
    """Test cancelled appointments free their slot."""
    await client.post(
        f"/api/v1/appointments/{created_appointment['id']}/cancel",
        json={"cancelledBy": "patient", "reason": "Busy"},
    )

    response = await client.get(
        f"/api/v1/appointments/available-slots/{provider['id']}",
        params={"date": MONDAY.isoformat()},
    )
    data = response.json()["data"]
    assert data["bookedTimes"] == []
    assert data["availableSlots"][0]["startTime"] == "09:00"


@pytest.mark.asyncio
async def test_provider_not_working(client: AsyncClient, provider: dict) -> None:
    """Test a day off yields no slots and an explanation."""
    response = await client.get(
        f"/api/v1/appointments/available-slots/{provider['id']}",
        params={"date": SUNDAY.isoformat()},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Provider not available on this day"
    assert body["data"]["availableSlots"] == []
    assert body["data"]["bookedTimes"] == []


@pytest.mark.asyncio
async def test_available_slots_require_date(client: AsyncClient, provider: dict) -> None:
    response = await client.get(f"/api/v1/appointments/available-slots/{provider['id']}")
    assert response.status_code == 400
    assert response.json()["error"] == "Date is required"


@pytest.mark.asyncio
async def test_available_slots_unknown_provider(client: AsyncClient) -> None:
    response = await client.get(
        f"/api/v1/appointments/available-slots/{uuid4()}", params={"date": MONDAY.isoformat()}
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Provider not found"

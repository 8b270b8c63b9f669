"""Tests for denormalized appointment statistics."""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booking_api.models import patients, practices, providers
from booking_api.services.stats_service import StatsService

URL = "/api/v1/appointments"


async def stats_of(db_session: AsyncSession, table, entity_id) -> dict:
    result = await db_session.execute(select(table.c.stats).where(table.c.id == entity_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_stats_after_booking(
    client: AsyncClient,
    db_session: AsyncSession,
    created_appointment: dict,
    practice: dict,
    patient: dict,
    provider: dict,
) -> None:
    """Test booking refreshes patient, provider and practice stats."""
    patient_stats = await stats_of(db_session, patients, patient["id"])
    assert patient_stats["totalAppointments"] == 1
    assert patient_stats["cancelledAppointments"] == 0
    assert patient_stats["noShows"] == 0
    assert patient_stats["nextAppointment"] == created_appointment["appointmentDate"]
    assert "lastUpdated" in patient_stats

    assert (await stats_of(db_session, providers, provider["id"]))["totalAppointments"] == 1
    assert (await stats_of(db_session, practices, practice["id"]))["totalAppointments"] == 1


@pytest.mark.asyncio
async def test_stats_after_cancellation(
    client: AsyncClient,
    db_session: AsyncSession,
    created_appointment: dict,
    practice: dict,
    patient: dict,
    provider: dict,
) -> None:
    """Test cancellations count for the patient and drop out of the provider total."""
    response = await client.post(
        f"{URL}/{created_appointment['id']}/cancel",
        json={"cancelledBy": "patient", "reason": "Moving away"},
    )
    assert response.status_code == 200

    patient_stats = await stats_of(db_session, patients, patient["id"])
    assert patient_stats["totalAppointments"] == 1
    assert patient_stats["cancelledAppointments"] == 1
    assert patient_stats["nextAppointment"] is None

    assert (await stats_of(db_session, providers, provider["id"]))["totalAppointments"] == 0
    assert (await stats_of(db_session, practices, practice["id"]))["totalAppointments"] == 1


@pytest.mark.asyncio
async def test_stats_count_no_shows(
    client: AsyncClient, db_session: AsyncSession, created_appointment: dict, patient: dict
) -> None:
    await client.patch(f"{URL}/{created_appointment['id']}/status", json={"status": "no-show"})

    patient_stats = await stats_of(db_session, patients, patient["id"])
    assert patient_stats["noShows"] == 1
    assert patient_stats["nextAppointment"] is None


@pytest.mark.asyncio
async def test_stats_after_delete(
    client: AsyncClient, db_session: AsyncSession, created_appointment: dict, practice: dict
) -> None:
    await client.delete(f"{URL}/{created_appointment['id']}")

    assert (await stats_of(db_session, practices, practice["id"]))["totalAppointments"] == 0


@pytest.mark.asyncio
async def test_stats_keep_unrelated_keys(
    client: AsyncClient, db_session: AsyncSession, appointment_payload, patient: dict
) -> None:
    """Test a refresh merges into existing stats instead of replacing them."""
    await db_session.execute(
        update(patients).where(patients.c.id == patient["id"]).values(stats={"loyaltyTier": "gold"})
    )
    await db_session.commit()

    await client.post(f"{URL}/", json=appointment_payload())

    patient_stats = await stats_of(db_session, patients, patient["id"])
    assert patient_stats["loyaltyTier"] == "gold"
    assert patient_stats["totalAppointments"] == 1


@pytest.mark.asyncio
async def test_next_appointment_skips_past_dates(
    db_session: AsyncSession, client: AsyncClient, appointment_payload, patient: dict
) -> None:
    """Test the next appointment is the earliest upcoming one on or after today."""
    await client.post(f"{URL}/", json=appointment_payload(appointmentDate="2030-01-09"))
    await client.post(f"{URL}/", json=appointment_payload(appointmentDate="2030-01-07"))

    await StatsService(db_session).refresh_patient(patient["id"], today=date(2030, 1, 8))
    await db_session.commit()

    patient_stats = await stats_of(db_session, patients, patient["id"])
    assert patient_stats["nextAppointment"] == "2030-01-09"
    assert patient_stats["totalAppointments"] == 2


@pytest.mark.asyncio
async def test_stats_failure_does_not_fail_request(
    client: AsyncClient, appointment_payload, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a failing stats refresh leaves the committed appointment in place."""

    async def broken(self, patient_id, today=None):
        raise RuntimeError("stats store unavailable")

    monkeypatch.setattr(StatsService, "refresh_patient", broken)

    response = await client.post(f"{URL}/", json=appointment_payload())
    assert response.status_code == 201

    listed = await client.get(f"{URL}/")
    assert listed.json()["count"] == 1

"""Script to insert a demo practice, patient and provider (local development)."""

import asyncio
from datetime import date

from sqlalchemy import insert

from booking_api.database import AsyncSessionLocal, engine
from booking_api.models import patients, practices, providers

WEEKDAY = {"available": True, "start": "09:00", "end": "17:00", "breaks": [{"start": "12:00", "end": "13:00"}]}


async def seed() -> None:
    """Create one practice with a patient and a provider working weekdays."""
    async with AsyncSessionLocal() as session:
        practice_id = (
            await session.execute(
                insert(practices)
                .values(
                    practice_name="Demo Family Practice",
                    contact={"phone": "+1-555-0100"},
                    location={"address": "1 Main St", "city": "Springfield"},
                )
                .returning(practices.c.id)
            )
        ).scalar_one()

        patient_id = (
            await session.execute(
                insert(patients)
                .values(
                    practice_id=practice_id,
                    first_name="Jane",
                    last_name="Doe",
                    date_of_birth=date(1990, 4, 2),
                    contact={"email": "jane.doe@example.com"},
                )
                .returning(patients.c.id)
            )
        ).scalar_one()

        provider_id = (
            await session.execute(
                insert(providers)
                .values(
                    practice_id=practice_id,
                    first_name="John",
                    last_name="Smith",
                    title="Dr.",
                    specialty="General Practice",
                    schedule={
                        **{day: WEEKDAY for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
                        "saturday": {"available": False},
                        "sunday": {"available": False},
                    },
                    appointment_duration_minutes=30,
                )
                .returning(providers.c.id)
            )
        ).scalar_one()

        await session.commit()

    await engine.dispose()
    print("✓ Demo data created")
    print(f"  practiceId: {practice_id}")
    print(f"  patientId:  {patient_id}")
    print(f"  providerId: {provider_id}")


if __name__ == "__main__":
    asyncio.run(seed())

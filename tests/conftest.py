import os
import sys
from collections.abc import AsyncGenerator
from datetime import date
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Load environment variables from .env file
load_dotenv()

from booking_api.config import settings
from booking_api.database import get_db
from booking_api.dependencies import get_cache_manager
from booking_api.main import app
from booking_api.models import metadata, patients, practices, providers

# Test database URL - MUST be different from the application database.
# Defaults to a throwaway in-memory SQLite database.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

if settings.database_url == TEST_DATABASE_URL:
    print("\n❌ CRITICAL ERROR: Test database URL is same as application database!")
    print("This would DROP all data during tests.")
    print("Please set TEST_DATABASE_URL to a separate test database in .env")
    sys.exit(1)

if TEST_DATABASE_URL.startswith("postgresql://"):
    TEST_DATABASE_URL = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

# Weekdays used across tests
MONDAY = date(2030, 1, 7)
WEDNESDAY = date(2030, 1, 9)
SUNDAY = date(2030, 1, 6)

WEEKDAY_HOURS = {"available": True, "start": "09:00", "end": "12:00"}
PROVIDER_SCHEDULE = {
    "monday": WEEKDAY_HOURS,
    "tuesday": WEEKDAY_HOURS,
    "wednesday": {
        "available": True,
        "start": "09:00",
        "end": "12:00",
        "breaks": [{"start": "10:00", "end": "10:30"}],
    },
    "thursday": WEEKDAY_HOURS,
    "friday": WEEKDAY_HOURS,
    "saturday": {"available": False},
    "sunday": {"available": False},
}


def _make_engine():
    """Create a fresh engine; an in-memory SQLite database lives as long as its engine."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    # Use NullPool to avoid event loop issues with remote databases
    return create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on freshly created tables."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with the cache disabled."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def practice(db_session: AsyncSession) -> dict:
    """Create a practice."""
    values = {
        "id": uuid4(),
        "practice_name": "Riverside Family Medicine",
        "contact": {"phone": "+1-555-0100", "email": "front@riverside.test"},
        "location": {"address": "12 River Rd", "city": "Springfield"},
        "stats": {},
    }
    await db_session.execute(insert(practices).values(**values))
    await db_session.commit()
    return values


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession, practice: dict) -> dict:
    """Create a patient of the practice."""
    values = {
        "id": uuid4(),
        "practice_id": practice["id"],
        "first_name": "Ada",
        "last_name": "Lovelace",
        "date_of_birth": date(1985, 12, 10),
        "contact": {"phone": "+1-555-0142"},
        "insurance": {"provider": "Acme Health", "policyNumber": "AH-1234"},
        "medical_history": {"allergies": ["penicillin"]},
        "stats": {},
    }
    await db_session.execute(insert(patients).values(**values))
    await db_session.commit()
    return values


async def _insert_provider(db_session: AsyncSession, practice: dict, **overrides) -> dict:
    values = {
        "id": uuid4(),
        "practice_id": practice["id"],
        "first_name": "Gregory",
        "last_name": "House",
        "title": "Dr.",
        "specialty": "Diagnostics",
        "contact": {"phone": "+1-555-0199"},
        "schedule": PROVIDER_SCHEDULE,
        "appointment_duration_minutes": 30,
        "stats": {},
    }
    values.update(overrides)
    await db_session.execute(insert(providers).values(**values))
    await db_session.commit()
    return values


@pytest_asyncio.fixture
async def provider(db_session: AsyncSession, practice: dict) -> dict:
    """Create a provider working weekday mornings."""
    return await _insert_provider(db_session, practice)


@pytest_asyncio.fixture
async def other_provider(db_session: AsyncSession, practice: dict) -> dict:
    """Create a second provider in the same practice."""
    return await _insert_provider(
        db_session, practice, first_name="Lisa", last_name="Cuddy", specialty="Endocrinology"
    )


@pytest.fixture
def appointment_payload(practice: dict, patient: dict, provider: dict):
    """Build appointment creation payloads for the seeded practice, patient and provider."""

    def build(**overrides) -> dict:
        payload = {
            "practiceId": str(practice["id"]),
            "patientId": str(patient["id"]),
            "providerId": str(provider["id"]),
            "appointmentDate": MONDAY.isoformat(),
            "startTime": "09:00",
            "endTime": "09:30",
            "appointmentType": "consultation",
            "reason": "Annual physical",
        }
        payload.update(overrides)
        return payload

    return build


@pytest_asyncio.fixture
async def created_appointment(client: AsyncClient, appointment_payload) -> dict:
    """Book one appointment through the API and return its data."""
    response = await client.post("/api/v1/appointments/", json=appointment_payload())
    assert response.status_code == 201
    return response.json()["data"]

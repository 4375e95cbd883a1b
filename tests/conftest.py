import os
from collections.abc import AsyncGenerator
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Settings are read at import time; these keep the suite self-contained
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./pt_clinic.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("PBKDF2_ROUNDS", "1000")
os.environ.setdefault("LOG_FORMAT", "console")

from app.core.security import create_password_record  # noqa: E402
from app.database import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import exercises, metadata, patients, staff, therapists, users  # noqa: E402

# Set TEST_DATABASE_URL to run against PostgreSQL instead of a throwaway SQLite file
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

API = "/api/v1"


def _enable_sqlite_foreign_keys(dbapi_conn: Any, connection_record: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    url = url.replace("postgresql://", "postgresql+asyncpg://")
    test_engine = create_async_engine(url, echo=False, poolclass=NullPool)
    if test_engine.dialect.name == "sqlite":
        event.listen(test_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def therapist_ids(db_session: AsyncSession) -> list[int]:
    """Two therapists; returns their staff IDs."""
    ids = []
    for name, specialty in (("Dana Whitfield", "Orthopedic"), ("Marcus Lee", "Sports")):
        result = await db_session.execute(
            insert(staff).values(name=name, role="Therapist").returning(staff.c.id)
        )
        staff_id = result.scalar_one()
        await db_session.execute(insert(therapists).values(staff_id=staff_id, specialty=specialty))
        ids.append(staff_id)
    await db_session.commit()
    return ids


@pytest_asyncio.fixture
async def patient_id(db_session: AsyncSession) -> int:
    """A patient with an active login."""
    result = await db_session.execute(
        insert(patients)
        .values(name="Jordan Avery", date_of_birth=date(1990, 4, 2), phone="555-0100")
        .returning(patients.c.id)
    )
    new_id = result.scalar_one()
    await db_session.execute(
        insert(users).values(
            username="jordan",
            password_hash=create_password_record("correct-horse"),
            role="patient",
            patient_id=new_id,
        )
    )
    await db_session.commit()
    return new_id


@pytest_asyncio.fixture
async def other_patient_id(db_session: AsyncSession) -> int:
    """A second patient without a login."""
    result = await db_session.execute(
        insert(patients)
        .values(name="Sam Ortiz", date_of_birth=date(1985, 9, 12), phone="555-0101")
        .returning(patients.c.id)
    )
    new_id = result.scalar_one()
    await db_session.commit()
    return new_id


@pytest_asyncio.fixture
async def exercise_ids(db_session: AsyncSession) -> list[int]:
    """Exercise catalog; returns the IDs in insertion order."""
    ids = []
    for name, region, difficulty in (("Clamshell", "Hip", 1), ("Wall Sit", "Knee", 2)):
        result = await db_session.execute(
            insert(exercises)
            .values(name=name, body_region=region, difficulty=difficulty)
            .returning(exercises.c.id)
        )
        ids.append(result.scalar_one())
    await db_session.commit()
    return ids


@pytest.fixture
def booking_url(patient_id: int) -> str:
    """Sessions collection URL of the default patient."""
    return f"{API}/patients/{patient_id}/sessions"

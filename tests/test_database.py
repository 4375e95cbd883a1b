"""Tests for the transaction scope and its constraint translation."""

from datetime import date, time, timedelta

import pytest
from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SlotUnavailableException
from app.database import transaction
from app.models import sessions


def session_row(patient_id: int, therapist_id: int, **overrides) -> dict:
    row = {
        "patient_id": patient_id,
        "therapist_id": therapist_id,
        "session_date": date.today() + timedelta(days=3),
        "session_time": time(10),
        "status": "Scheduled",
        "pain_pre": 3,
    }
    row.update(overrides)
    return row


async def count_sessions(db: AsyncSession) -> int:
    return await db.scalar(select(func.count()).select_from(sessions))


@pytest.mark.asyncio
async def test_unique_violation_becomes_slot_conflict(
    db_session: AsyncSession,
    therapist_ids: list[int],
    patient_id: int,
    other_patient_id: int,
) -> None:
    """A duplicate live slot is reported as a conflict and rolled back."""
    async with transaction(db_session):
        await db_session.execute(insert(sessions).values(session_row(patient_id, therapist_ids[0])))

    with pytest.raises(SlotUnavailableException) as exc_info:
        async with transaction(db_session):
            await db_session.execute(
                insert(sessions).values(session_row(other_patient_id, therapist_ids[0]))
            )

    assert exc_info.value.status_code == 409
    assert await count_sessions(db_session) == 1


@pytest.mark.asyncio
async def test_foreign_key_violation_is_not_a_conflict(
    db_session: AsyncSession, therapist_ids: list[int]
) -> None:
    """A missing referenced row surfaces as the original integrity error."""
    with pytest.raises(IntegrityError):
        async with transaction(db_session):
            await db_session.execute(insert(sessions).values(session_row(999, therapist_ids[0])))

    assert await count_sessions(db_session) == 0


@pytest.mark.asyncio
async def test_check_violation_is_not_a_conflict(
    db_session: AsyncSession, therapist_ids: list[int], patient_id: int
) -> None:
    """An out-of-range pain level surfaces as the original integrity error."""
    with pytest.raises(IntegrityError):
        async with transaction(db_session):
            await db_session.execute(
                insert(sessions).values(session_row(patient_id, therapist_ids[0], pain_pre=42))
            )

    assert await count_sessions(db_session) == 0

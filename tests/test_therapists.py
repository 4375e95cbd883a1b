"""Tests for the therapist directory, exercise catalog and dashboard."""

from datetime import date, time, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import outcome_measures, sessions

API = "/api/v1"


@pytest.mark.asyncio
async def test_list_therapists(client: AsyncClient, therapist_ids: list[int]) -> None:
    """Therapists come back ordered by name."""
    response = await client.get(f"{API}/therapists")

    assert response.status_code == 200
    therapists = response.json()["therapists"]
    assert [t["name"] for t in therapists] == ["Dana Whitfield", "Marcus Lee"]
    assert therapists[0]["therapistId"] == therapist_ids[0]
    assert therapists[0]["specialty"] == "Orthopedic"


@pytest.mark.asyncio
async def test_list_exercises(client: AsyncClient, exercise_ids: list[int]) -> None:
    """The catalog lists every exercise with its region and difficulty."""
    response = await client.get(f"{API}/exercises")

    assert response.status_code == 200
    exercises = response.json()["exercises"]
    assert [e["name"] for e in exercises] == ["Clamshell", "Wall Sit"]
    assert exercises[1] == {
        "exerciseId": exercise_ids[1],
        "name": "Wall Sit",
        "bodyRegion": "Knee",
        "difficulty": 2,
    }


@pytest.mark.asyncio
async def test_dashboard_unknown_therapist(client: AsyncClient) -> None:
    """A missing therapist is a 404."""
    response = await client.get(f"{API}/therapists/999/dashboard")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_dashboard_empty_schedule(client: AsyncClient, therapist_ids: list[int]) -> None:
    """No upcoming sessions means no patient summaries."""
    response = await client.get(f"{API}/therapists/{therapist_ids[0]}/dashboard")

    assert response.status_code == 200
    assert response.json() == {"upcomingSessions": [], "patientSummaries": {}}


@pytest.mark.asyncio
async def test_dashboard_history_and_outcomes(
    client: AsyncClient,
    db_session: AsyncSession,
    therapist_ids: list[int],
    patient_id: int,
) -> None:
    """Upcoming sessions carry the patient's recent visits and outcome trend."""
    therapist_id = therapist_ids[0]
    today = date.today()

    # Past visits are inserted directly; the API refuses past dates
    for days_ago in (28, 21, 14, 7):
        await db_session.execute(
            insert(sessions).values(
                patient_id=patient_id,
                therapist_id=therapist_id,
                session_date=today - timedelta(days=days_ago),
                session_time=time(9),
                status="Completed",
                pain_pre=5,
            )
        )
    await db_session.execute(
        insert(outcome_measures),
        [
            {
                "patient_id": patient_id,
                "measure_name": "LEFS",
                "score": score,
                "taken_on": today - timedelta(days=days_ago),
            }
            for days_ago, score in ((28, 30.0), (14, 41.0), (7, 48.0))
        ],
    )
    await db_session.commit()

    upcoming_day = (today + timedelta(days=3)).isoformat()
    created = await client.post(
        f"{API}/patients/{patient_id}/sessions",
        json={
            "therapistId": therapist_id,
            "sessionDate": upcoming_day,
            "sessionTime": "11:00",
            "painPre": 4,
        },
    )
    assert created.status_code == 201

    response = await client.get(f"{API}/therapists/{therapist_id}/dashboard")

    assert response.status_code == 200
    data = response.json()

    assert len(data["upcomingSessions"]) == 1
    upcoming = data["upcomingSessions"][0]
    assert upcoming["patientName"] == "Jordan Avery"
    assert upcoming["sessionDate"] == upcoming_day
    assert upcoming["sessionTime"] == "11:00"

    summary = data["patientSummaries"][str(patient_id)]
    previous = summary["previousSessions"]
    assert len(previous) == 3
    assert [p["sessionDate"] for p in previous] == [
        (today - timedelta(days=days_ago)).isoformat() for days_ago in (7, 14, 21)
    ]

    assert summary["outcomeSummaries"] == [
        {
            "measureName": "LEFS",
            "baselineScore": 30.0,
            "baselineTakenOn": (today - timedelta(days=28)).isoformat(),
            "latestScore": 48.0,
            "latestTakenOn": (today - timedelta(days=7)).isoformat(),
        }
    ]


@pytest.mark.asyncio
async def test_health_endpoints(client: AsyncClient) -> None:
    """Liveness endpoints answer without a database."""
    health = await client.get(f"{API}/health")
    ping = await client.get(f"{API}/ping")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert ping.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    """A client supplied request id comes back; otherwise one is generated."""
    supplied = await client.get(f"{API}/ping", headers={"X-Request-ID": "req-42"})
    generated = await client.get(f"{API}/ping")

    assert supplied.headers["X-Request-ID"] == "req-42"
    assert len(generated.headers["X-Request-ID"]) == 32
    assert float(generated.headers["X-Process-Time"]) >= 0

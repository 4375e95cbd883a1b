"""Therapist directory, availability and session finalization endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from app.dependencies import DatabaseSession
from app.schemas.sessions import AvailabilityResponse, SessionStart, SessionStartResponse
from app.schemas.therapists import TherapistDashboard, TherapistListResponse
from app.services.scheduling_service import SchedulingService
from app.services.therapist_service import TherapistService

router = APIRouter()

TherapistId = Annotated[int, Path(gt=0, description="Therapist (staff) ID")]


@router.get(
    "",
    response_model=TherapistListResponse,
    status_code=status.HTTP_200_OK,
    summary="List therapists",
)
async def list_therapists(db: DatabaseSession) -> TherapistListResponse:
    """List therapists for the booking picker."""
    service = TherapistService(db)
    return await service.list_therapists()


@router.get(
    "/{therapist_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Free slots of a therapist",
)
async def get_availability(
    therapist_id: TherapistId,
    db: DatabaseSession,
    on_date: date = Query(..., alias="date", description="Day to inspect (YYYY-MM-DD)"),
) -> AvailabilityResponse:
    """
    Report which slots of the day are still free.

    Args:
        therapist_id: Therapist ID
        db: Database session
        on_date: Day to inspect

    Returns:
        Available HH:MM times in ascending order
    """
    service = SchedulingService(db)
    return await service.get_availability(therapist_id, on_date)


@router.get(
    "/{therapist_id}/dashboard",
    response_model=TherapistDashboard,
    status_code=status.HTTP_200_OK,
    summary="Therapist dashboard",
)
async def get_dashboard(
    therapist_id: TherapistId,
    db: DatabaseSession,
) -> TherapistDashboard:
    """Upcoming schedule plus recent history of the patients on it."""
    service = TherapistService(db)
    return await service.get_dashboard(therapist_id)


@router.post(
    "/{therapist_id}/sessions/{session_id}/start",
    response_model=SessionStartResponse,
    status_code=status.HTTP_200_OK,
    summary="Start or finalize a session",
)
async def start_session(
    therapist_id: TherapistId,
    session_id: Annotated[int, Path(gt=0, description="Session ID")],
    data: SessionStart,
    db: DatabaseSession,
) -> SessionStartResponse:
    """
    Set the session status and attach exercises and outcome measures.

    Invalid exercise or outcome entries are skipped rather than rejected.

    Args:
        therapist_id: Therapist ID
        session_id: Session ID
        data: Status, notes, pain levels, exercises and outcomes
        db: Database session

    Returns:
        Success acknowledgement
    """
    service = SchedulingService(db)
    await service.start_session(therapist_id, session_id, data)
    return SessionStartResponse(success=True)

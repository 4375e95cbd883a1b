"""Patient session and onboarding endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from app.dependencies import DatabaseSession
from app.schemas.patients import OnboardingRequest, OnboardingResponse
from app.schemas.sessions import (
    PatientSessionsResponse,
    SessionCreate,
    SessionResponse,
    SessionUpdate,
)
from app.services.patient_service import PatientService
from app.services.scheduling_service import SchedulingService

router = APIRouter()

PatientId = Annotated[int, Path(gt=0, description="Patient ID")]
SessionId = Annotated[int, Path(gt=0, description="Session ID")]


@router.get(
    "/{patient_id}/sessions",
    response_model=PatientSessionsResponse,
    status_code=status.HTTP_200_OK,
    summary="List patient sessions",
)
async def list_patient_sessions(
    patient_id: PatientId,
    db: DatabaseSession,
) -> PatientSessionsResponse:
    """
    List upcoming and recent sessions of a patient.

    Args:
        patient_id: Patient ID
        db: Database session

    Returns:
        Upcoming sessions ascending and up to ten past sessions, newest first
    """
    service = SchedulingService(db)
    return await service.list_patient_sessions(patient_id)


@router.post(
    "/{patient_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a session",
)
async def create_session(
    patient_id: PatientId,
    data: SessionCreate,
    db: DatabaseSession,
) -> SessionResponse:
    """
    Book a session for a patient.

    Args:
        patient_id: Patient ID
        data: Therapist, date, time, pain level and notes
        db: Database session

    Returns:
        Created session

    Raises:
        NotFoundException: Patient or therapist missing (404)
        ConflictException: Patient day or therapist slot taken (409)
    """
    service = SchedulingService(db)
    return await service.create_session(patient_id, data)


@router.patch(
    "/{patient_id}/sessions/{session_id}",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Reschedule or edit a session",
)
async def update_session(
    patient_id: PatientId,
    session_id: SessionId,
    data: SessionUpdate,
    db: DatabaseSession,
) -> SessionResponse:
    """
    Update a patient's session; omitted fields keep their value.

    Args:
        patient_id: Patient ID
        session_id: Session ID
        data: Partial update
        db: Database session

    Returns:
        Updated session
    """
    service = SchedulingService(db)
    return await service.update_session(patient_id, session_id, data)


@router.post(
    "/{patient_id}/onboarding",
    response_model=OnboardingResponse,
    status_code=status.HTTP_200_OK,
    summary="Complete onboarding",
)
async def complete_onboarding(
    patient_id: PatientId,
    data: OnboardingRequest,
    db: DatabaseSession,
) -> OnboardingResponse:
    """Record the referral and activate the patient account."""
    service = PatientService(db)
    return await service.complete_onboarding(patient_id, data)

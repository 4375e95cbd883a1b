"""Exercise catalog endpoints."""

from fastapi import APIRouter, status

from app.dependencies import DatabaseSession
from app.schemas.exercises import ExerciseListResponse
from app.services.therapist_service import TherapistService

router = APIRouter()


@router.get(
    "",
    response_model=ExerciseListResponse,
    status_code=status.HTTP_200_OK,
    summary="List exercises",
)
async def list_exercises(db: DatabaseSession) -> ExerciseListResponse:
    """List exercises therapists can prescribe."""
    service = TherapistService(db)
    return await service.list_exercises()

"""Exercise catalog schemas."""

from app.schemas.base import CamelModel


class ExerciseItem(CamelModel):
    """Exercise a therapist can prescribe."""

    exercise_id: int
    name: str
    body_region: str
    difficulty: int


class ExerciseListResponse(CamelModel):
    """Exercise catalog."""

    exercises: list[ExerciseItem]

"""Database models."""

from app.models.base import metadata
from app.models.exercises import exercises
from app.models.outcomes import outcome_measures
from app.models.patients import patients, referrals
from app.models.sessions import (
    SESSION_STATUSES,
    session_audit,
    session_exercises,
    sessions,
)
from app.models.staff import staff, therapists
from app.models.users import USER_ROLES, users

__all__ = [
    "SESSION_STATUSES",
    "USER_ROLES",
    "exercises",
    "metadata",
    "outcome_measures",
    "patients",
    "referrals",
    "session_audit",
    "session_exercises",
    "sessions",
    "staff",
    "therapists",
    "users",
]

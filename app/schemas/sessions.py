"""Therapy session schemas for request/response validation."""

from datetime import date, time
from enum import Enum
from typing import Any

from pydantic import Field, field_serializer, field_validator

from app.core.slots import format_slot, parse_slot
from app.schemas.base import CamelModel, clean_optional_text


class SessionStatus(str, Enum):
    """Session status enumeration."""

    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELED = "Canceled"
    NO_SHOW = "No-Show"


def _not_in_past(value: date | None) -> date | None:
    """Reject calendar days before today."""
    if value is not None and value < date.today():
        raise ValueError("Session date cannot be in the past.")
    return value


class SessionCreate(CamelModel):
    """Schema for a patient booking a new session."""

    therapist_id: int = Field(..., gt=0)
    session_date: date
    session_time: time
    pain_pre: int = Field(..., ge=0, le=10)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("session_date")
    @classmethod
    def validate_session_date(cls, v: date) -> date:
        """Sessions cannot be booked for a past day."""
        return _not_in_past(v)

    @field_validator("session_time", mode="before")
    @classmethod
    def validate_session_time(cls, v: Any) -> time:
        """Normalize the time and require a catalog slot."""
        return parse_slot(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str | None) -> str | None:
        """Trim notes; blank becomes null."""
        return clean_optional_text(v)


class SessionUpdate(CamelModel):
    """Schema for a patient rescheduling or editing a session.

    Omitted fields keep their stored value.
    """

    therapist_id: int | None = Field(None, gt=0)
    session_date: date | None = None
    session_time: time | None = None
    pain_pre: int | None = Field(None, ge=0, le=10)
    status: SessionStatus | None = None
    notes: str | None = Field(None, max_length=2000)

    @field_validator("session_date")
    @classmethod
    def validate_session_date(cls, v: date | None) -> date | None:
        """Sessions cannot be moved to a past day."""
        return _not_in_past(v)

    @field_validator("session_time", mode="before")
    @classmethod
    def validate_session_time(cls, v: Any) -> time | None:
        """Normalize the time and require a catalog slot."""
        if v is None:
            return None
        return parse_slot(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str | None) -> str | None:
        """Trim notes; blank becomes null."""
        return clean_optional_text(v)


class SessionResponse(CamelModel):
    """Schema for a session as returned to patients."""

    session_id: int
    patient_id: int
    therapist_id: int
    session_date: date
    session_time: time
    status: SessionStatus
    pain_pre: int | None = None
    pain_post: int | None = None
    notes: str | None = None

    @field_serializer("session_time")
    def serialize_session_time(self, v: time) -> str:
        """Render the slot as HH:MM."""
        return format_slot(v)


class SessionExerciseEntry(CamelModel):
    """One prescribed exercise attached when a session is finalized."""

    exercise_id: int = Field(..., gt=0)
    sets: int = Field(..., gt=0)
    reps: int = Field(..., gt=0)
    resistance: str | None = Field(None, max_length=60, validate_default=True)

    @field_validator("resistance")
    @classmethod
    def default_resistance(cls, v: str | None) -> str:
        """Blank resistance means bodyweight."""
        return clean_optional_text(v) or "Bodyweight"


class OutcomeMeasureEntry(CamelModel):
    """One outcome score recorded when a session is finalized."""

    measure_name: str = Field(..., min_length=1, max_length=120)
    score: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    taken_on: date
    notes: str | None = None

    @field_validator("measure_name", mode="before")
    @classmethod
    def strip_measure_name(cls, v: Any) -> Any:
        """Ignore surrounding whitespace in measure names."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str | None) -> str | None:
        """Trim notes; blank becomes null."""
        return clean_optional_text(v)


class SessionStart(CamelModel):
    """Schema for a therapist starting or finalizing a session.

    Exercise and outcome entries are accepted loosely here; the service keeps
    the valid ones and drops the rest instead of rejecting the request.
    """

    status: SessionStatus
    notes: str | None = Field(None, max_length=2000)
    pain_pre: int | None = None
    pain_post: int | None = None
    session_exercises: list[Any] = Field(default_factory=list)
    outcome_measures: list[Any] = Field(default_factory=list)

    @field_validator("pain_pre", "pain_post", mode="before")
    @classmethod
    def keep_valid_pain(cls, v: Any) -> int | None:
        """Anything but an integer from 0 to 10 leaves the stored value alone."""
        if isinstance(v, bool):
            return None
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, int) and 0 <= v <= 10:
            return v
        return None

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str | None) -> str | None:
        """Trim notes; blank becomes null."""
        return clean_optional_text(v)

    @field_validator("session_exercises", "outcome_measures", mode="before")
    @classmethod
    def null_means_empty(cls, v: Any) -> Any:
        """A null list is treated as empty."""
        return [] if v is None else v


class SessionStartResponse(CamelModel):
    """Acknowledgement for a finalized session."""

    success: bool = True


class AvailabilityResponse(CamelModel):
    """Free slots for one therapist on one day."""

    therapist_id: int
    date: str
    available_times: list[str]


class PatientSessionItem(CamelModel):
    """Session row shown on the patient home page."""

    session_id: int
    session_date: date
    session_time: time
    status: SessionStatus
    pain_pre: int | None = None
    notes: str | None = None
    therapist_id: int
    therapist_name: str
    specialty: str

    @field_serializer("session_time")
    def serialize_session_time(self, v: time) -> str:
        """Render the slot as HH:MM."""
        return format_slot(v)


class PatientSessionsResponse(CamelModel):
    """Upcoming and past sessions of a patient."""

    upcoming: list[PatientSessionItem]
    past: list[PatientSessionItem]

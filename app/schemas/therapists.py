"""Therapist directory and dashboard schemas."""

from datetime import date, time

from pydantic import field_serializer

from app.core.slots import format_slot
from app.schemas.base import CamelModel
from app.schemas.sessions import SessionStatus


class TherapistItem(CamelModel):
    """Therapist entry for the booking picker."""

    therapist_id: int
    name: str
    specialty: str


class TherapistListResponse(CamelModel):
    """Therapist directory."""

    therapists: list[TherapistItem]


class DashboardSession(CamelModel):
    """Session on a therapist's schedule."""

    session_id: int
    session_date: date
    session_time: time
    status: SessionStatus
    pain_pre: int | None = None
    notes: str | None = None
    patient_id: int
    patient_name: str

    @field_serializer("session_time")
    def serialize_session_time(self, v: time) -> str:
        return format_slot(v)


class PreviousSession(CamelModel):
    """Earlier session between the therapist and a patient."""

    session_id: int
    session_date: date
    session_time: time
    status: SessionStatus
    pain_pre: int | None = None
    notes: str | None = None

    @field_serializer("session_time")
    def serialize_session_time(self, v: time) -> str:
        return format_slot(v)


class OutcomeSummary(CamelModel):
    """First and most recent score of one measure."""

    measure_name: str
    baseline_score: float | None = None
    baseline_taken_on: date | None = None
    latest_score: float | None = None
    latest_taken_on: date | None = None


class PatientSummary(CamelModel):
    """Recent history of a patient on the therapist's schedule."""

    previous_sessions: list[PreviousSession]
    outcome_summaries: list[OutcomeSummary]


class TherapistDashboard(CamelModel):
    """Therapist dashboard payload."""

    upcoming_sessions: list[DashboardSession]
    patient_summaries: dict[int, PatientSummary]

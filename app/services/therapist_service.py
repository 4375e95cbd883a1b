"""Therapist directory and dashboard queries."""

from collections import defaultdict
from datetime import date

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models import exercises, outcome_measures, patients, sessions, staff, therapists
from app.schemas.exercises import ExerciseItem, ExerciseListResponse
from app.schemas.therapists import (
    DashboardSession,
    OutcomeSummary,
    PatientSummary,
    PreviousSession,
    TherapistDashboard,
    TherapistItem,
    TherapistListResponse,
)

PREVIOUS_SESSIONS_PER_PATIENT = 3


class TherapistService:
    """Read-only views for the booking picker and the therapist portal."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_therapists(self) -> TherapistListResponse:
        """List every therapist ordered by name."""
        stmt = (
            select(
                therapists.c.staff_id.label("therapist_id"),
                staff.c.name,
                therapists.c.specialty,
            )
            .join(staff, staff.c.id == therapists.c.staff_id)
            .order_by(staff.c.name.asc())
        )
        result = await self.db.execute(stmt)
        return TherapistListResponse(
            therapists=[TherapistItem.model_validate(dict(row)) for row in result.mappings()]
        )

    async def list_exercises(self) -> ExerciseListResponse:
        """List the exercise catalog ordered by name."""
        stmt = select(
            exercises.c.id.label("exercise_id"),
            exercises.c.name,
            exercises.c.body_region,
            exercises.c.difficulty,
        ).order_by(exercises.c.name.asc())
        result = await self.db.execute(stmt)
        return ExerciseListResponse(
            exercises=[ExerciseItem.model_validate(dict(row)) for row in result.mappings()]
        )

    async def get_dashboard(self, therapist_id: int) -> TherapistDashboard:
        """
        Build the therapist dashboard.

        Args:
            therapist_id: Therapist (staff) ID

        Returns:
            Sessions from today on, plus the recent history and outcome
            baseline/latest scores of every patient on that schedule

        Raises:
            NotFoundException: If the therapist does not exist
        """
        found = await self.db.execute(
            select(therapists.c.staff_id).where(therapists.c.staff_id == therapist_id)
        )
        if found.first() is None:
            raise NotFoundException("Therapist not found.")

        today = date.today()
        upcoming_stmt = (
            select(
                sessions.c.id.label("session_id"),
                sessions.c.session_date,
                sessions.c.session_time,
                sessions.c.status,
                sessions.c.pain_pre,
                sessions.c.notes,
                sessions.c.patient_id,
                patients.c.name.label("patient_name"),
            )
            .join(patients, patients.c.id == sessions.c.patient_id)
            .where(
                and_(
                    sessions.c.therapist_id == therapist_id,
                    sessions.c.session_date >= today,
                )
            )
            .order_by(sessions.c.session_date.asc(), sessions.c.session_time.asc())
        )
        upcoming = [
            DashboardSession.model_validate(dict(row))
            for row in (await self.db.execute(upcoming_stmt)).mappings()
        ]

        patient_ids = sorted({session.patient_id for session in upcoming})
        summaries = {
            patient_id: PatientSummary(previous_sessions=[], outcome_summaries=[])
            for patient_id in patient_ids
        }
        if not patient_ids:
            return TherapistDashboard(upcoming_sessions=upcoming, patient_summaries=summaries)

        for row in await self._previous_sessions(therapist_id, patient_ids, today):
            summaries[row["patient_id"]].previous_sessions.append(
                PreviousSession.model_validate(dict(row))
            )

        for patient_id, outcome_list in (await self._outcome_summaries(patient_ids)).items():
            summaries[patient_id].outcome_summaries.extend(outcome_list)

        return TherapistDashboard(upcoming_sessions=upcoming, patient_summaries=summaries)

    async def _previous_sessions(
        self,
        therapist_id: int,
        patient_ids: list[int],
        today: date,
    ) -> list[dict]:
        """Latest earlier sessions per patient with this therapist."""
        rank = (
            func.row_number()
            .over(
                partition_by=sessions.c.patient_id,
                order_by=(sessions.c.session_date.desc(), sessions.c.session_time.desc()),
            )
            .label("rn")
        )
        ranked = (
            select(
                sessions.c.id.label("session_id"),
                sessions.c.patient_id,
                sessions.c.session_date,
                sessions.c.session_time,
                sessions.c.status,
                sessions.c.pain_pre,
                sessions.c.notes,
                rank,
            )
            .where(
                and_(
                    sessions.c.patient_id.in_(patient_ids),
                    sessions.c.therapist_id == therapist_id,
                    sessions.c.session_date < today,
                )
            )
            .subquery()
        )
        stmt = (
            select(ranked)
            .where(ranked.c.rn <= PREVIOUS_SESSIONS_PER_PATIENT)
            .order_by(ranked.c.patient_id, ranked.c.rn)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings()]

    async def _outcome_summaries(self, patient_ids: list[int]) -> dict[int, list[OutcomeSummary]]:
        """First and latest score of each measure, per patient."""
        stmt = (
            select(
                outcome_measures.c.patient_id,
                outcome_measures.c.measure_name,
                outcome_measures.c.score,
                outcome_measures.c.taken_on,
            )
            .where(outcome_measures.c.patient_id.in_(patient_ids))
            .order_by(
                outcome_measures.c.patient_id,
                outcome_measures.c.measure_name,
                outcome_measures.c.taken_on.asc(),
            )
        )
        result = await self.db.execute(stmt)

        grouped: dict[tuple[int, str], list[dict]] = defaultdict(list)
        for row in result.mappings():
            grouped[(row["patient_id"], row["measure_name"])].append(dict(row))

        summaries: dict[int, list[OutcomeSummary]] = defaultdict(list)
        for (patient_id, measure_name), rows in grouped.items():
            baseline, latest = rows[0], rows[-1]
            summaries[patient_id].append(
                OutcomeSummary(
                    measure_name=measure_name,
                    baseline_score=baseline["score"],
                    baseline_taken_on=baseline["taken_on"],
                    latest_score=latest["score"],
                    latest_taken_on=latest["taken_on"],
                )
            )
        return summaries

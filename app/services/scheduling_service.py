"""Scheduling service: availability, booking, rescheduling and finalizing sessions."""

from datetime import date, time
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, NotFoundException
from app.core.slots import allowed_slots, format_slot
from app.database import transaction
from app.models import (
    exercises,
    outcome_measures,
    patients,
    session_exercises,
    sessions,
    staff,
    therapists,
)
from app.schemas.sessions import (
    AvailabilityResponse,
    OutcomeMeasureEntry,
    PatientSessionItem,
    PatientSessionsResponse,
    SessionCreate,
    SessionExerciseEntry,
    SessionResponse,
    SessionStart,
    SessionStatus,
    SessionUpdate,
)

logger = structlog.get_logger()

PATIENT_DAY_TAKEN = "You already have a session scheduled for this date."
THERAPIST_SLOT_TAKEN = "This time slot is no longer available."
PAST_SESSIONS_LIMIT = 10

# Columns returned for a session, keyed the way the response schema expects
SESSION_COLUMNS = (
    sessions.c.id.label("session_id"),
    sessions.c.patient_id,
    sessions.c.therapist_id,
    sessions.c.session_date,
    sessions.c.session_time,
    sessions.c.status,
    sessions.c.pain_pre,
    sessions.c.pain_post,
    sessions.c.notes,
)


def keep_valid_entries(
    entries: list[Any],
    model: type[BaseModel],
    kind: str,
) -> list[Any]:
    """
    Keep the entries that validate against ``model`` and drop the others.

    Invalid sub-rows never fail the request; each drop is logged.

    Args:
        entries: Raw entries from the request body
        model: Schema every kept entry must satisfy
        kind: Label used in the log event

    Returns:
        Validated entries in their original order
    """
    kept = []
    for index, entry in enumerate(entries):
        try:
            kept.append(model.model_validate(entry))
        except ValidationError as e:
            logger.info(
                f"{kind}_entry_dropped",
                index=index,
                errors=[error["msg"] for error in e.errors()],
            )
    return kept


class SchedulingService:
    """Service for session scheduling rules."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _ensure_patient(self, patient_id: int) -> None:
        result = await self.db.execute(select(patients.c.id).where(patients.c.id == patient_id))
        if result.first() is None:
            raise NotFoundException("Patient not found.")

    async def _ensure_therapist(self, therapist_id: int) -> None:
        result = await self.db.execute(
            select(therapists.c.staff_id).where(therapists.c.staff_id == therapist_id)
        )
        if result.first() is None:
            raise NotFoundException("Therapist not found.")

    async def _patient_day_taken(
        self,
        patient_id: int,
        session_date: date,
        exclude_session_id: int | None = None,
    ) -> bool:
        """Check whether the patient already has a live session that day."""
        conditions = [
            sessions.c.patient_id == patient_id,
            sessions.c.session_date == session_date,
            sessions.c.status != SessionStatus.CANCELED.value,
        ]
        if exclude_session_id is not None:
            conditions.append(sessions.c.id != exclude_session_id)

        result = await self.db.execute(select(sessions.c.id).where(and_(*conditions)).limit(1))
        return result.first() is not None

    async def _therapist_slot_taken(
        self,
        therapist_id: int,
        session_date: date,
        session_time: time,
        exclude_session_id: int | None = None,
    ) -> bool:
        """Check whether the therapist slot holds a live session."""
        conditions = [
            sessions.c.therapist_id == therapist_id,
            sessions.c.session_date == session_date,
            sessions.c.session_time == session_time,
            sessions.c.status != SessionStatus.CANCELED.value,
        ]
        if exclude_session_id is not None:
            conditions.append(sessions.c.id != exclude_session_id)

        result = await self.db.execute(select(sessions.c.id).where(and_(*conditions)).limit(1))
        return result.first() is not None

    async def _check_conflicts(
        self,
        patient_id: int,
        therapist_id: int,
        session_date: date,
        session_time: time,
        exclude_session_id: int | None = None,
    ) -> None:
        """
        Raise when the proposed slot collides with another live session.

        The partial unique indexes on ``sessions`` remain the final arbiter;
        this pre-check exists to produce a precise message.

        Raises:
            ConflictException: If the patient day or therapist slot is taken
        """
        if await self._patient_day_taken(patient_id, session_date, exclude_session_id):
            logger.info(
                "session_conflict",
                reason="patient_day",
                patient_id=patient_id,
                session_date=session_date.isoformat(),
            )
            raise ConflictException(PATIENT_DAY_TAKEN)

        if await self._therapist_slot_taken(
            therapist_id, session_date, session_time, exclude_session_id
        ):
            logger.info(
                "session_conflict",
                reason="therapist_slot",
                therapist_id=therapist_id,
                session_date=session_date.isoformat(),
                session_time=format_slot(session_time),
            )
            raise ConflictException(THERAPIST_SLOT_TAKEN)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_availability(self, therapist_id: int, on_date: date) -> AvailabilityResponse:
        """
        List the free slots of a therapist on a day.

        Args:
            therapist_id: Therapist (staff) ID
            on_date: Calendar day to inspect

        Returns:
            Catalog slots not held by a live session, ascending

        Raises:
            NotFoundException: If the therapist does not exist
        """
        await self._ensure_therapist(therapist_id)

        stmt = select(sessions.c.session_time).where(
            and_(
                sessions.c.therapist_id == therapist_id,
                sessions.c.session_date == on_date,
                sessions.c.status != SessionStatus.CANCELED.value,
            )
        )
        result = await self.db.execute(stmt)
        booked = {booked_time.replace(microsecond=0) for booked_time in result.scalars()}

        return AvailabilityResponse(
            therapist_id=therapist_id,
            date=on_date.isoformat(),
            available_times=[format_slot(slot) for slot in allowed_slots() if slot not in booked],
        )

    async def list_patient_sessions(self, patient_id: int) -> PatientSessionsResponse:
        """
        List a patient's upcoming and recent sessions.

        Upcoming sessions are still scheduled from today on; past sessions are
        either before today or no longer scheduled.
        """
        await self._ensure_patient(patient_id)
        today = date.today()

        base = (
            select(
                sessions.c.id.label("session_id"),
                sessions.c.session_date,
                sessions.c.session_time,
                sessions.c.status,
                sessions.c.pain_pre,
                sessions.c.notes,
                sessions.c.therapist_id,
                staff.c.name.label("therapist_name"),
                therapists.c.specialty,
            )
            .join(therapists, therapists.c.staff_id == sessions.c.therapist_id)
            .join(staff, staff.c.id == therapists.c.staff_id)
            .where(sessions.c.patient_id == patient_id)
        )

        upcoming_stmt = base.where(
            and_(
                sessions.c.status == SessionStatus.SCHEDULED.value,
                sessions.c.session_date >= today,
            )
        ).order_by(sessions.c.session_date.asc(), sessions.c.session_time.asc())

        past_stmt = (
            base.where(
                or_(
                    sessions.c.session_date < today,
                    sessions.c.status != SessionStatus.SCHEDULED.value,
                )
            )
            .order_by(sessions.c.session_date.desc(), sessions.c.session_time.desc())
            .limit(PAST_SESSIONS_LIMIT)
        )

        upcoming = (await self.db.execute(upcoming_stmt)).mappings().all()
        past = (await self.db.execute(past_stmt)).mappings().all()

        return PatientSessionsResponse(
            upcoming=[PatientSessionItem.model_validate(dict(row)) for row in upcoming],
            past=[PatientSessionItem.model_validate(dict(row)) for row in past],
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_session(self, patient_id: int, data: SessionCreate) -> SessionResponse:
        """
        Book a new session for a patient.

        Existence checks, conflict checks and the insert share one transaction.

        Args:
            patient_id: Patient booking the session
            data: Validated booking request

        Returns:
            Created session

        Raises:
            NotFoundException: If the patient or therapist does not exist
            ConflictException: If the patient day or therapist slot is taken
        """
        async with transaction(self.db):
            await self._ensure_patient(patient_id)
            await self._ensure_therapist(data.therapist_id)
            await self._check_conflicts(
                patient_id,
                data.therapist_id,
                data.session_date,
                data.session_time,
            )

            stmt = (
                insert(sessions)
                .values(
                    patient_id=patient_id,
                    therapist_id=data.therapist_id,
                    session_date=data.session_date,
                    session_time=data.session_time,
                    status=SessionStatus.SCHEDULED.value,
                    pain_pre=data.pain_pre,
                    pain_post=None,
                    notes=data.notes,
                )
                .returning(*SESSION_COLUMNS)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().one()

        logger.info(
            "session_created",
            session_id=row["session_id"],
            patient_id=patient_id,
            therapist_id=data.therapist_id,
        )
        return SessionResponse.model_validate(dict(row))

    async def update_session(
        self,
        patient_id: int,
        session_id: int,
        data: SessionUpdate,
    ) -> SessionResponse:
        """
        Reschedule or edit a patient's session.

        Omitted fields keep their stored values. Conflicts are checked against
        the resolved slot while ignoring the session itself.

        Args:
            patient_id: Patient owning the session
            session_id: Session to update
            data: Validated partial update

        Returns:
            Updated session with every field resolved

        Raises:
            NotFoundException: If the session is not the patient's, or a new
                therapist does not exist
            ConflictException: If the resolved slot is taken
        """
        async with transaction(self.db):
            result = await self.db.execute(
                select(*SESSION_COLUMNS).where(
                    and_(sessions.c.id == session_id, sessions.c.patient_id == patient_id)
                )
            )
            current = result.mappings().first()
            if current is None:
                raise NotFoundException("Session not found.")

            if data.therapist_id is not None:
                await self._ensure_therapist(data.therapist_id)

            therapist_id = data.therapist_id or current["therapist_id"]
            session_date = data.session_date or current["session_date"]
            session_time = data.session_time or current["session_time"]
            pain_pre = data.pain_pre if data.pain_pre is not None else current["pain_pre"]
            status = data.status.value if data.status is not None else current["status"]
            notes = data.notes if "notes" in data.model_fields_set else current["notes"]

            # A canceled session holds no slot
            if status != SessionStatus.CANCELED.value:
                await self._check_conflicts(
                    patient_id,
                    therapist_id,
                    session_date,
                    session_time,
                    exclude_session_id=session_id,
                )

            stmt = (
                update(sessions)
                .where(sessions.c.id == session_id)
                .values(
                    therapist_id=therapist_id,
                    session_date=session_date,
                    session_time=session_time,
                    pain_pre=pain_pre,
                    status=status,
                    notes=notes,
                    updated_at=func.now(),
                )
                .returning(*SESSION_COLUMNS)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().one()

        logger.info(
            "session_updated",
            session_id=session_id,
            patient_id=patient_id,
            old_status=current["status"],
            new_status=status,
        )
        return SessionResponse.model_validate(dict(row))

    async def start_session(
        self,
        therapist_id: int,
        session_id: int,
        data: SessionStart,
    ) -> None:
        """
        Finalize a session: status, documentation, exercises and outcomes.

        Exercise rows are fully replaced; outcome measures are upserted by
        patient, measure name and day. Invalid sub-entries are dropped. The
        status audit row is written by the database trigger.

        Args:
            therapist_id: Therapist owning the session
            session_id: Session to finalize
            data: Validated request

        Raises:
            NotFoundException: If the session is not the therapist's
        """
        exercise_entries: list[SessionExerciseEntry] = keep_valid_entries(
            data.session_exercises, SessionExerciseEntry, "exercise"
        )
        outcome_entries: list[OutcomeMeasureEntry] = keep_valid_entries(
            data.outcome_measures, OutcomeMeasureEntry, "outcome"
        )

        async with transaction(self.db):
            result = await self.db.execute(
                select(sessions.c.patient_id, sessions.c.status).where(
                    and_(sessions.c.id == session_id, sessions.c.therapist_id == therapist_id)
                )
            )
            current = result.mappings().first()
            if current is None:
                raise NotFoundException("Session not found.")

            values: dict[str, Any] = {
                "status": data.status.value,
                "updated_at": func.now(),
            }
            if "notes" in data.model_fields_set:
                values["notes"] = data.notes
            if data.pain_pre is not None:
                values["pain_pre"] = data.pain_pre
            if data.pain_post is not None:
                values["pain_post"] = data.pain_post

            await self.db.execute(
                update(sessions).where(sessions.c.id == session_id).values(**values)
            )

            exercise_entries = await self._drop_unknown_exercises(exercise_entries)
            await self.db.execute(
                delete(session_exercises).where(session_exercises.c.session_id == session_id)
            )
            if exercise_entries:
                await self.db.execute(
                    insert(session_exercises),
                    [
                        {
                            "session_id": session_id,
                            "exercise_id": entry.exercise_id,
                            "sets": entry.sets,
                            "reps": entry.reps,
                            "resistance": entry.resistance,
                        }
                        for entry in exercise_entries
                    ],
                )

            for entry in outcome_entries:
                await self._upsert_outcome(current["patient_id"], entry)

        logger.info(
            "session_started",
            session_id=session_id,
            therapist_id=therapist_id,
            old_status=current["status"],
            new_status=data.status.value,
            exercises=len(exercise_entries),
            outcomes=len(outcome_entries),
        )

    async def _drop_unknown_exercises(
        self,
        entries: list[SessionExerciseEntry],
    ) -> list[SessionExerciseEntry]:
        """Drop entries referencing exercises missing from the catalog."""
        if not entries:
            return entries

        ids = {entry.exercise_id for entry in entries}
        result = await self.db.execute(select(exercises.c.id).where(exercises.c.id.in_(ids)))
        known = set(result.scalars())

        for entry in entries:
            if entry.exercise_id not in known:
                logger.info("exercise_entry_dropped", exercise_id=entry.exercise_id, reason="unknown")
        return [entry for entry in entries if entry.exercise_id in known]

    async def _upsert_outcome(self, patient_id: int, entry: OutcomeMeasureEntry) -> None:
        """Insert an outcome score, or overwrite score and notes for the same day."""
        dialect = self.db.get_bind().dialect.name
        insert_factory = pg_insert if dialect == "postgresql" else sqlite_insert

        stmt = insert_factory(outcome_measures).values(
            patient_id=patient_id,
            measure_name=entry.measure_name,
            score=entry.score,
            taken_on=entry.taken_on,
            notes=entry.notes,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                outcome_measures.c.patient_id,
                outcome_measures.c.measure_name,
                outcome_measures.c.taken_on,
            ],
            set_={"score": stmt.excluded.score, "notes": stmt.excluded.notes},
        )
        await self.db.execute(stmt)

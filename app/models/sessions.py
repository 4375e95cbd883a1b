"""Therapy session tables using SQLAlchemy Core.

Slot exclusivity is enforced here, not only in the scheduling service: two
partial unique indexes ignore canceled rows, so a canceled slot can be booked
again while two live sessions can never share a therapist slot or a patient
day. Status changes are recorded into ``session_audit`` by a trigger.
"""

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
    event,
    text,
)

from app.models.base import metadata

SESSION_STATUSES = ("Scheduled", "Completed", "Canceled", "No-Show")

_STATUS_CHECK = "status IN (" + ", ".join(f"'{status}'" for status in SESSION_STATUSES) + ")"
_LIVE_SESSION = text("status <> 'Canceled'")

sessions = Table(
    "sessions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "patient_id",
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "therapist_id",
        Integer,
        ForeignKey("therapists.staff_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("session_date", Date, nullable=False),
    Column("session_time", Time, nullable=False),
    Column("status", String(20), nullable=False, server_default="Scheduled"),
    Column("pain_pre", Integer, nullable=True),
    Column("pain_post", Integer, nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    CheckConstraint(_STATUS_CHECK, name="status"),
    CheckConstraint("pain_pre IS NULL OR pain_pre BETWEEN 0 AND 10", name="pain_pre"),
    CheckConstraint("pain_post IS NULL OR pain_post BETWEEN 0 AND 10", name="pain_post"),
    Index(
        "uq_sessions_therapist_slot",
        "therapist_id",
        "session_date",
        "session_time",
        unique=True,
        postgresql_where=_LIVE_SESSION,
        sqlite_where=_LIVE_SESSION,
    ),
    Index(
        "uq_sessions_patient_day",
        "patient_id",
        "session_date",
        unique=True,
        postgresql_where=_LIVE_SESSION,
        sqlite_where=_LIVE_SESSION,
    ),
)

session_exercises = Table(
    "session_exercises",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "session_id",
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("exercise_id", Integer, ForeignKey("exercises.id"), nullable=False),
    Column("sets", Integer, nullable=False),
    Column("reps", Integer, nullable=False),
    Column("resistance", String(60), nullable=False, server_default="Bodyweight"),
    CheckConstraint("sets > 0", name="sets"),
    CheckConstraint("reps > 0", name="reps"),
)

# Append-only; written by trg_session_status_audit
session_audit = Table(
    "session_audit",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "session_id",
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("old_status", String(20), nullable=False),
    Column("new_status", String(20), nullable=False),
    Column("changed_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
)

# ---------------------------------------------------------------------------
# Dialect-specific DDL
# ---------------------------------------------------------------------------

SQLITE_AUDIT_TRIGGER = """
CREATE TRIGGER IF NOT EXISTS trg_session_status_audit
AFTER UPDATE OF status ON sessions
FOR EACH ROW
WHEN NEW.status <> OLD.status
BEGIN
    INSERT INTO session_audit (session_id, old_status, new_status)
    VALUES (NEW.id, OLD.status, NEW.status);
END
"""

POSTGRES_AUDIT_FUNCTION = """
CREATE OR REPLACE FUNCTION log_session_status_change()
RETURNS TRIGGER AS $$
BEGIN
    IF NEW.status IS DISTINCT FROM OLD.status THEN
        INSERT INTO session_audit (session_id, old_status, new_status)
        VALUES (NEW.id, OLD.status, NEW.status);
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

POSTGRES_AUDIT_TRIGGER = """
CREATE TRIGGER trg_session_status_audit
AFTER UPDATE OF status ON sessions
FOR EACH ROW
EXECUTE FUNCTION log_session_status_change()
"""

POSTGRES_SESSION_TIME_CHECK = """
ALTER TABLE sessions
ADD CONSTRAINT chk_session_time
CHECK (session_time BETWEEN '08:00:00' AND '16:00:00')
"""

event.listen(
    sessions,
    "after_create",
    DDL(POSTGRES_SESSION_TIME_CHECK).execute_if(dialect="postgresql"),
)
event.listen(
    session_audit,
    "after_create",
    DDL(SQLITE_AUDIT_TRIGGER).execute_if(dialect="sqlite"),
)
event.listen(
    session_audit,
    "after_create",
    DDL(POSTGRES_AUDIT_FUNCTION).execute_if(dialect="postgresql"),
)
event.listen(
    session_audit,
    "after_create",
    DDL(POSTGRES_AUDIT_TRIGGER).execute_if(dialect="postgresql"),
)
event.listen(
    sessions,
    "after_drop",
    DDL("DROP FUNCTION IF EXISTS log_session_status_change()").execute_if(dialect="postgresql"),
)

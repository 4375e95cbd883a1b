"""Initial schema - clinic tables, slot indexes and status audit trigger

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


def upgrade() -> None:
    """Create clinic tables."""
    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        _timestamp("created_at"),
    )

    op.create_table(
        "referrals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("dx_code", sa.String(20), nullable=False),
        sa.Column("referral_date", sa.Date(), nullable=False),
        sa.Column("referring_provider", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_referrals_patient_id", "referrals", ["patient_id"])

    op.create_table(
        "staff",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("role", sa.String(40), nullable=False, server_default="Therapist"),
    )

    op.create_table(
        "therapists",
        sa.Column(
            "staff_id",
            sa.Integer(),
            sa.ForeignKey("staff.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("specialty", sa.Text(), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(60), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            unique=True,
        ),
        sa.Column(
            "staff_id",
            sa.Integer(),
            sa.ForeignKey("staff.id", ondelete="CASCADE"),
            unique=True,
        ),
        sa.Column(
            "needs_password_reset",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "role IN ('pending', 'patient', 'therapist', 'admin')",
            name="ck_users_role",
        ),
    )

    op.create_table(
        "exercises",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("body_region", sa.String(60), nullable=False),
        sa.Column("difficulty", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("difficulty BETWEEN 1 AND 5", name="ck_exercises_difficulty"),
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "therapist_id",
            sa.Integer(),
            sa.ForeignKey("therapists.staff_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("session_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Scheduled"),
        sa.Column("pain_pre", sa.Integer(), nullable=True),
        sa.Column("pain_post", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('Scheduled', 'Completed', 'Canceled', 'No-Show')",
            name="ck_sessions_status",
        ),
        sa.CheckConstraint(
            "pain_pre IS NULL OR pain_pre BETWEEN 0 AND 10",
            name="ck_sessions_pain_pre",
        ),
        sa.CheckConstraint(
            "pain_post IS NULL OR pain_post BETWEEN 0 AND 10",
            name="ck_sessions_pain_post",
        ),
        sa.CheckConstraint(
            "session_time BETWEEN '08:00:00' AND '16:00:00'",
            name="chk_session_time",
        ),
    )
    op.create_index("ix_sessions_patient_id", "sessions", ["patient_id"])
    op.create_index("ix_sessions_therapist_id", "sessions", ["therapist_id"])

    # Canceled rows release their slot
    op.create_index(
        "uq_sessions_therapist_slot",
        "sessions",
        ["therapist_id", "session_date", "session_time"],
        unique=True,
        postgresql_where=sa.text("status <> 'Canceled'"),
    )
    op.create_index(
        "uq_sessions_patient_day",
        "sessions",
        ["patient_id", "session_date"],
        unique=True,
        postgresql_where=sa.text("status <> 'Canceled'"),
    )

    op.create_table(
        "session_exercises",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exercise_id", sa.Integer(), sa.ForeignKey("exercises.id"), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=False),
        sa.Column("resistance", sa.String(60), nullable=False, server_default="Bodyweight"),
        sa.CheckConstraint("sets > 0", name="ck_session_exercises_sets"),
        sa.CheckConstraint("reps > 0", name="ck_session_exercises_reps"),
    )
    op.create_index("ix_session_exercises_session_id", "session_exercises", ["session_id"])

    op.create_table(
        "session_audit",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("old_status", sa.String(20), nullable=False),
        sa.Column("new_status", sa.String(20), nullable=False),
        _timestamp("changed_at"),
    )
    op.create_index("ix_session_audit_session_id", "session_audit", ["session_id"])

    op.create_table(
        "outcome_measures",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("measure_name", sa.String(120), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("taken_on", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("score BETWEEN 0 AND 100", name="ck_outcome_measures_score"),
        sa.UniqueConstraint(
            "patient_id",
            "measure_name",
            "taken_on",
            name="uq_outcome_measures_patient_measure_day",
        ),
    )
    op.create_index("ix_outcome_measures_patient_id", "outcome_measures", ["patient_id"])

    # ===================================================================
    # TRIGGER: record every status change of a session
    # ===================================================================
    op.execute(
        """
        CREATE OR REPLACE FUNCTION log_session_status_change()
        RETURNS TRIGGER AS $$
        BEGIN
            IF NEW.status IS DISTINCT FROM OLD.status THEN
                INSERT INTO session_audit (session_id, old_status, new_status)
                VALUES (NEW.id, OLD.status, NEW.status);
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """
    )

    op.execute(
        """
        CREATE TRIGGER trg_session_status_audit
        AFTER UPDATE OF status ON sessions
        FOR EACH ROW
        EXECUTE FUNCTION log_session_status_change();
    """
    )


def downgrade() -> None:
    """Drop clinic tables."""
    op.execute("DROP TRIGGER IF EXISTS trg_session_status_audit ON sessions")
    op.execute("DROP FUNCTION IF EXISTS log_session_status_change()")

    op.drop_table("outcome_measures")
    op.drop_table("session_audit")
    op.drop_table("session_exercises")
    op.drop_index("uq_sessions_patient_day", table_name="sessions")
    op.drop_index("uq_sessions_therapist_slot", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("exercises")
    op.drop_table("users")
    op.drop_table("therapists")
    op.drop_table("staff")
    op.drop_table("referrals")
    op.drop_table("patients")

"""Outcome measure table using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)

from app.models.base import metadata

outcome_measures = Table(
    "outcome_measures",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "patient_id",
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("measure_name", String(120), nullable=False),
    Column("score", Float, nullable=False),
    Column("taken_on", Date, nullable=False),
    Column("notes", Text, nullable=True),
    CheckConstraint("score BETWEEN 0 AND 100", name="score"),
    # Upsert target: one score per patient, measure and day
    UniqueConstraint("patient_id", "measure_name", "taken_on", name="uq_outcome_measures_patient_measure_day"),
)

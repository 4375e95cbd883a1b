"""Exercise catalog table using SQLAlchemy Core."""

from sqlalchemy import CheckConstraint, Column, Integer, String, Table, Text

from app.models.base import metadata

exercises = Table(
    "exercises",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("body_region", String(60), nullable=False),
    Column("difficulty", Integer, nullable=False, server_default="1"),
    CheckConstraint("difficulty BETWEEN 1 AND 5", name="difficulty"),
)

"""Staff and therapist tables using SQLAlchemy Core."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text

from app.models.base import metadata

staff = Table(
    "staff",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("role", String(40), nullable=False, server_default="Therapist"),
)

# A therapist is a staff member with a specialty; shares the staff primary key
therapists = Table(
    "therapists",
    metadata,
    Column(
        "staff_id",
        Integer,
        ForeignKey("staff.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("specialty", Text, nullable=False),
)

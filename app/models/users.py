"""User model definition using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    text,
)

from app.models.base import metadata

USER_ROLES = ("pending", "patient", "therapist", "admin")

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Login identity, stored lower-cased
    Column("username", String(60), nullable=False, unique=True),
    # pbkdf2_sha512 modular crypt string; salt is embedded
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default="pending"),
    # Role bindings
    Column("patient_id", Integer, ForeignKey("patients.id", ondelete="CASCADE"), unique=True),
    Column("staff_id", Integer, ForeignKey("staff.id", ondelete="CASCADE"), unique=True),
    # Account state
    Column("needs_password_reset", Boolean, nullable=False, server_default=text("false")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    CheckConstraint(
        "role IN (" + ", ".join(f"'{role}'" for role in USER_ROLES) + ")",
        name="role",
    ),
)

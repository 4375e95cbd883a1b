"""Authentication service for local credentials and JWT."""

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, UnauthorizedException
from app.core.security import create_access_token, create_password_record, verify_password
from app.database import transaction
from app.models import patients, staff, users
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
)

logger = structlog.get_logger()

USERNAME_TAKEN = "Username already exists."
INVALID_CREDENTIALS = "Invalid username or password."


class AuthService:
    """Service for sign-up, login and password changes."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def signup(self, data: SignupRequest) -> SignupResponse:
        """
        Register a patient and their login in one transaction.

        The account starts as ``pending`` until onboarding is completed.

        Args:
            data: Validated sign-up request

        Returns:
            New patient ID and normalized username

        Raises:
            ConflictException: If the username is taken
        """
        async with transaction(self.db, conflict_message=USERNAME_TAKEN):
            existing = await self.db.execute(
                select(users.c.id).where(users.c.username == data.username).limit(1)
            )
            if existing.first() is not None:
                raise ConflictException(USERNAME_TAKEN)

            result = await self.db.execute(
                insert(patients)
                .values(name=data.name, date_of_birth=data.dob, phone=data.phone)
                .returning(patients.c.id)
            )
            patient_id = result.scalar_one()

            await self.db.execute(
                insert(users).values(
                    username=data.username,
                    password_hash=create_password_record(data.password),
                    role="pending",
                    patient_id=patient_id,
                )
            )

        logger.info("patient_signed_up", patient_id=patient_id, username=data.username)
        return SignupResponse(patient_id=patient_id, username=data.username)

    async def login(self, data: LoginRequest) -> LoginResponse:
        """
        Check credentials and issue an access token.

        Raises:
            UnauthorizedException: If the username or password is wrong
        """
        stmt = (
            select(
                users,
                patients.c.name.label("patient_name"),
                staff.c.name.label("therapist_name"),
            )
            .outerjoin(patients, patients.c.id == users.c.patient_id)
            .outerjoin(staff, staff.c.id == users.c.staff_id)
            .where(users.c.username == data.username)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        user = result.mappings().first()

        if user is None or not verify_password(data.password, user["password_hash"]):
            logger.info("login_failed", username=data.username)
            raise UnauthorizedException(INVALID_CREDENTIALS)

        token = create_access_token(data={"sub": str(user["id"]), "role": user["role"]})
        logger.info("login_succeeded", user_id=user["id"], role=user["role"])

        return LoginResponse(
            user_id=user["id"],
            username=user["username"],
            role=user["role"],
            patient_id=user["patient_id"],
            patient_name=user["patient_name"],
            staff_id=user["staff_id"],
            therapist_name=user["therapist_name"],
            needs_password_reset=user["needs_password_reset"],
            needs_profile_completion=user["role"] == "pending",
            access_token=token,
        )

    async def change_password(self, user: dict, data: ChangePasswordRequest) -> None:
        """
        Replace the password of the authenticated user.

        Raises:
            UnauthorizedException: If the current password is wrong
        """
        if not verify_password(data.current_password, user["password_hash"]):
            raise UnauthorizedException("Current password is incorrect.")

        async with transaction(self.db):
            await self.db.execute(
                update(users)
                .where(users.c.id == user["id"])
                .values(
                    password_hash=create_password_record(data.new_password),
                    needs_password_reset=False,
                    updated_at=func.now(),
                )
            )

        logger.info("password_changed", user_id=user["id"])

    async def get_user_by_id(self, user_id: int) -> dict | None:
        """Load a user row by ID."""
        result = await self.db.execute(select(users).where(users.c.id == user_id))
        user = result.mappings().first()
        return dict(user) if user else None

"""Patient onboarding service."""

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.database import transaction
from app.models import patients, referrals, users
from app.schemas.patients import OnboardingRequest, OnboardingResponse

logger = structlog.get_logger()


class PatientService:
    """Service for patient account lifecycle."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def complete_onboarding(
        self,
        patient_id: int,
        data: OnboardingRequest,
    ) -> OnboardingResponse:
        """
        Record the referral and promote the login from pending to patient.

        Args:
            patient_id: Patient finishing onboarding
            data: Referral details

        Returns:
            Resulting role and patient name

        Raises:
            NotFoundException: If the patient does not exist
        """
        async with transaction(self.db):
            result = await self.db.execute(
                select(patients.c.name).where(patients.c.id == patient_id)
            )
            patient_name = result.scalar_one_or_none()
            if patient_name is None:
                raise NotFoundException("Patient not found.")

            await self.db.execute(
                insert(referrals).values(
                    patient_id=patient_id,
                    dx_code=data.dx_code,
                    referral_date=data.referral_date,
                    referring_provider=data.referring_provider,
                )
            )

            await self.db.execute(
                update(users)
                .where(and_(users.c.patient_id == patient_id, users.c.role == "pending"))
                .values(role="patient", updated_at=func.now())
            )

            role_result = await self.db.execute(
                select(users.c.role).where(users.c.patient_id == patient_id)
            )
            role = role_result.scalar_one_or_none() or "patient"

        logger.info("patient_onboarded", patient_id=patient_id, role=role)
        return OnboardingResponse(role=role, patient_name=patient_name)

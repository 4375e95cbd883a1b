"""Patient onboarding schemas."""

from datetime import date

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


class OnboardingRequest(CamelModel):
    """Referral details collected when a patient finishes onboarding."""

    dx_code: str = Field(..., max_length=20)
    referral_date: date
    referring_provider: str = Field(..., max_length=200)

    @field_validator("dx_code", "referring_provider")
    @classmethod
    def require_text(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Diagnosis code and referring provider are required.")
        return stripped


class OnboardingResponse(CamelModel):
    """Account state after onboarding."""

    role: str
    patient_name: str
    needs_profile_completion: bool = False

"""Authentication schemas."""

from datetime import date

from pydantic import Field, ValidationInfo, field_validator

from app.schemas.base import CamelModel


class SignupRequest(CamelModel):
    """Patient self sign-up request."""

    name: str = Field(..., max_length=200)
    dob: date
    phone: str = Field(..., max_length=30)
    username: str = Field(..., max_length=60)
    password: str

    @field_validator("name", "phone")
    @classmethod
    def require_text(cls, v: str, info: ValidationInfo) -> str:
        """Required text fields cannot be blank."""
        stripped = v.strip()
        if not stripped:
            label = "Patient name" if info.field_name == "name" else "A contact phone number"
            raise ValueError(f"{label} is required.")
        return stripped

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        """Usernames are case-insensitive."""
        normalized = v.strip().lower()
        if not normalized:
            raise ValueError("A username is required.")
        return normalized

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Enforce the minimum password length."""
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters.")
        return v


class SignupResponse(CamelModel):
    """Created patient account."""

    patient_id: int
    username: str


class LoginRequest(CamelModel):
    """Username and password login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        """Usernames are case-insensitive."""
        return v.strip().lower()


class LoginResponse(CamelModel):
    """Login response with the session identity and an access token."""

    user_id: int
    username: str
    role: str
    patient_id: int | None = None
    patient_name: str | None = None
    staff_id: int | None = None
    therapist_name: str | None = None
    needs_password_reset: bool = False
    needs_profile_completion: bool = False
    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(CamelModel):
    """Password change for the authenticated user."""

    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        """Enforce the minimum password length."""
        if len(v) < 8:
            raise ValueError("New password must be at least 8 characters.")
        return v


class ChangePasswordResponse(CamelModel):
    """Password change acknowledgement."""

    success: bool = True

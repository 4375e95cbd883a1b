"""Authentication endpoints."""

from fastapi import APIRouter, status

from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.auth import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
)
from app.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Patient sign-up",
)
async def signup(data: SignupRequest, db: DatabaseSession) -> SignupResponse:
    """
    Create a patient record and its login.

    Args:
        data: Name, date of birth, phone, username and password
        db: Database session

    Returns:
        New patient ID and username
    """
    return await AuthService(db).signup(data)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Username and password login",
)
async def login(data: LoginRequest, db: DatabaseSession) -> LoginResponse:
    """
    Verify credentials and return the user identity with an access token.

    Args:
        data: Username and password
        db: Database session

    Returns:
        User identity, role bindings and bearer token
    """
    return await AuthService(db).login(data)


@router.post(
    "/change-password",
    response_model=ChangePasswordResponse,
    status_code=status.HTTP_200_OK,
    summary="Change password",
)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ChangePasswordResponse:
    """Replace the authenticated user's password."""
    await AuthService(db).change_password(current_user, data)
    return ChangePasswordResponse(success=True)

"""Tests for sign-up, login, password changes and onboarding."""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, decode_access_token, verify_password
from app.models import referrals, users

API = "/api/v1"

SIGNUP = {
    "name": "Riley Chen",
    "dob": "1992-03-14",
    "phone": "555-0199",
    "username": "RChen",
    "password": "s3cure-pass",
}


@pytest.mark.asyncio
async def test_signup_creates_pending_patient(
    client: AsyncClient, db_session: AsyncSession
) -> None:
    """Sign-up stores a patient and a pending login with a salted hash."""
    response = await client.post(f"{API}/auth/signup", json=SIGNUP)

    assert response.status_code == 201
    data = response.json()
    assert data["patientId"] > 0
    assert data["username"] == "rchen"

    user = (
        await db_session.execute(select(users).where(users.c.username == "rchen"))
    ).mappings().one()
    assert user["role"] == "pending"
    assert user["patient_id"] == data["patientId"]
    assert user["password_hash"] != SIGNUP["password"]
    assert verify_password(SIGNUP["password"], user["password_hash"])


@pytest.mark.asyncio
async def test_signup_duplicate_username(client: AsyncClient) -> None:
    """Usernames are unique regardless of case."""
    await client.post(f"{API}/auth/signup", json=SIGNUP)

    response = await client.post(f"{API}/auth/signup", json={**SIGNUP, "username": "rchen"})

    assert response.status_code == 409
    assert response.json()["message"] == "Username already exists."


@pytest.mark.asyncio
async def test_signup_validation(client: AsyncClient) -> None:
    """Blank required fields and short passwords are all reported."""
    response = await client.post(
        f"{API}/auth/signup",
        json={**SIGNUP, "name": "  ", "phone": "", "password": "short"},
    )

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert "Patient name is required." in errors
    assert "A contact phone number is required." in errors
    assert "Password must be at least 8 characters." in errors


@pytest.mark.asyncio
async def test_login_pending_user_needs_profile(client: AsyncClient) -> None:
    """A freshly signed-up user must complete onboarding."""
    signup = (await client.post(f"{API}/auth/signup", json=SIGNUP)).json()

    response = await client.post(
        f"{API}/auth/login", json={"username": "rchen", "password": SIGNUP["password"]}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "pending"
    assert data["patientId"] == signup["patientId"]
    assert data["patientName"] == "Riley Chen"
    assert data["needsProfileCompletion"] is True
    assert data["tokenType"] == "bearer"

    payload = decode_access_token(data["accessToken"])
    assert payload is not None
    assert payload["sub"] == str(data["userId"])


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, patient_id: int) -> None:
    """Bad credentials are a 401 with a generic message."""
    response = await client.post(
        f"{API}/auth/login", json={"username": "jordan", "password": "wrong-password"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid username or password."


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient) -> None:
    """Unknown usernames look the same as wrong passwords."""
    response = await client.post(
        f"{API}/auth/login", json={"username": "nobody", "password": "whatever1"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, patient_id: int) -> None:
    """The new password works and the old one stops working."""
    login = (
        await client.post(
            f"{API}/auth/login", json={"username": "jordan", "password": "correct-horse"}
        )
    ).json()
    headers = {"Authorization": f"Bearer {login['accessToken']}"}

    response = await client.post(
        f"{API}/auth/change-password",
        json={"currentPassword": "correct-horse", "newPassword": "battery-staple"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    old = await client.post(
        f"{API}/auth/login", json={"username": "jordan", "password": "correct-horse"}
    )
    new = await client.post(
        f"{API}/auth/login", json={"username": "jordan", "password": "battery-staple"}
    )
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, patient_id: int) -> None:
    """The current password must match."""
    login = (
        await client.post(
            f"{API}/auth/login", json={"username": "jordan", "password": "correct-horse"}
        )
    ).json()

    response = await client.post(
        f"{API}/auth/change-password",
        json={"currentPassword": "not-it", "newPassword": "battery-staple"},
        headers={"Authorization": f"Bearer {login['accessToken']}"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Current password is incorrect."


@pytest.mark.asyncio
async def test_change_password_requires_token(client: AsyncClient) -> None:
    """Missing or invalid bearer tokens are rejected."""
    body = {"currentPassword": "correct-horse", "newPassword": "battery-staple"}

    missing = await client.post(f"{API}/auth/change-password", json=body)
    assert missing.status_code in (401, 403)

    invalid = await client.post(
        f"{API}/auth/change-password",
        json=body,
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert invalid.status_code == 401

    orphan = create_access_token(data={"sub": "999", "role": "patient"})
    response = await client.post(
        f"{API}/auth/change-password",
        json=body,
        headers={"Authorization": f"Bearer {orphan}"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_onboarding_activates_patient(
    client: AsyncClient, db_session: AsyncSession
) -> None:
    """Onboarding records the referral and switches the role to patient."""
    signup = (await client.post(f"{API}/auth/signup", json=SIGNUP)).json()
    patient_id = signup["patientId"]

    response = await client.post(
        f"{API}/patients/{patient_id}/onboarding",
        json={
            "dxCode": "M25.561",
            "referralDate": "2026-01-15",
            "referringProvider": "Dr. Alvarez",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "patient"
    assert data["patientName"] == "Riley Chen"
    assert data["needsProfileCompletion"] is False

    referral = (
        await db_session.execute(select(referrals).where(referrals.c.patient_id == patient_id))
    ).mappings().one()
    assert referral["dx_code"] == "M25.561"
    assert referral["referral_date"] == date(2026, 1, 15)

    login = (
        await client.post(
            f"{API}/auth/login", json={"username": "rchen", "password": SIGNUP["password"]}
        )
    ).json()
    assert login["role"] == "patient"
    assert login["needsProfileCompletion"] is False


@pytest.mark.asyncio
async def test_onboarding_unknown_patient(client: AsyncClient) -> None:
    """Onboarding a missing patient is a 404."""
    response = await client.post(
        f"{API}/patients/999/onboarding",
        json={"dxCode": "M54.5", "referralDate": "2026-01-15", "referringProvider": "Dr. Kim"},
    )

    assert response.status_code == 404

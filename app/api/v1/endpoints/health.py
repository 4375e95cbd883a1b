"""Liveness and readiness probes."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from app.config import settings
from app.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Service identity reported by the probes."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Probe result including the database round trip."""

    database: str


def _service_fields() -> dict[str, str]:
    return {"version": settings.app_version, "environment": settings.environment}


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
)
async def health_check() -> HealthResponse:
    """Answer without touching the database."""
    return HealthResponse(status="healthy", **_service_fields())


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness probe",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Run ``SELECT 1`` against the pool.

    Returns:
        ``degraded`` overall when the database does not answer
    """
    database_up = await check_database_connection()

    return DetailedHealthResponse(
        status="healthy" if database_up else "degraded",
        database="healthy" if database_up else "unhealthy",
        **_service_fields(),
    )


@router.get("/ping", status_code=status.HTTP_200_OK, summary="Ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}

"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, exercises, health, patients, therapists

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(patients.router, prefix="/patients", tags=["Patients"])
api_router.include_router(therapists.router, prefix="/therapists", tags=["Therapists"])
api_router.include_router(exercises.router, prefix="/exercises", tags=["Exercises"])

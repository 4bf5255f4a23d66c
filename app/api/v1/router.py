# app/api/v1/router.py
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    practitioners,
    drafts,
    prescriptions,
    patients,
    dashboard,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(practitioners.router, prefix="/practitioners", tags=["practitioners"])
api_router.include_router(drafts.router, prefix="/drafts", tags=["drafts"])
api_router.include_router(prescriptions.router, prefix="/prescriptions", tags=["prescriptions"])
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

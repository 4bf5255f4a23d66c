# app/api/v1/endpoints/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession, get_auth_session
from app.core.database import get_db
from app.schemas.dashboard import DashboardStats
from app.services.dashboard_service import get_dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> DashboardStats:
    """
    Totals and the most recent prescriptions for the signed-in practitioner.
    """
    return get_dashboard_stats(db, session)

# app/services/dashboard_service.py
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession
from app.core.config import get_settings
from app.models.prescription import Prescription
from app.schemas.dashboard import DashboardStats
from app.schemas.prescription import PrescriptionResponse
from app.services.history_service import group_by_patient, list_prescriptions
from app.services.practitioner_service import get_profile

logger = logging.getLogger(__name__)


def get_dashboard_stats(db: Session, session: AuthSession) -> DashboardStats:
    """
    Counts and recent activity for the admin landing page.

    The dashboard is informational only: a failed read is logged and the
    stats come back zeroed rather than failing the page.
    """
    settings = get_settings()
    stats = DashboardStats(practitioner_name=session.metadata.get("full_name") or "")

    try:
        profile = get_profile(db, session)
        if profile.full_name:
            stats.practitioner_name = profile.full_name

        total = (
            db.query(func.count(Prescription.id))
            .filter(Prescription.practitioner_id == session.user_id)
            .scalar()
        ) or 0
        prescriptions = list_prescriptions(db, practitioner_id=session.user_id)
    except SQLAlchemyError as e:
        logger.warning("Dashboard stats unavailable for %s: %s", session.user_id, e, exc_info=True)
        db.rollback()
        return stats

    stats.total_prescriptions = total
    stats.total_patients = len(group_by_patient(prescriptions))
    stats.recent_prescriptions = [
        PrescriptionResponse.model_validate(p)
        for p in prescriptions[: settings.dashboard_recent_limit]
    ]
    return stats

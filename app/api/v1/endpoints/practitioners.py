# app/api/v1/endpoints/practitioners.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession, get_auth_session
from app.core.database import get_db
from app.schemas.practitioner import PractitionerProfile, PractitionerProfileUpdate
from app.services.practitioner_service import get_profile, save_profile

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/me", response_model=PractitionerProfile)
def read_my_profile(
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PractitionerProfile:
    return get_profile(db, session)


@router.put("/me", response_model=PractitionerProfile)
def update_my_profile(
    payload: PractitionerProfileUpdate,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PractitionerProfile:
    """
    Create or update the practitioner profile used to pre-fill prescriptions.
    """
    if not payload.full_name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Full name is required.",
        )

    try:
        practitioner = save_profile(db, session, payload)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save practitioner profile.",
        )

    return PractitionerProfile.model_validate(practitioner)

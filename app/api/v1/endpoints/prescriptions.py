# app/api/v1/endpoints/prescriptions.py
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession, get_auth_session, get_optional_auth_session
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.draft import PrescriptionDraft
from app.schemas.notification import destructive, success
from app.schemas.prescription import (
    PrescriptionDeleteResponse,
    PrescriptionResponse,
    PrescriptionSubmitResponse,
)
from app.services.history_service import (
    DeletionVerificationError,
    PrescriptionNotFoundError,
    delete_prescription,
    get_prescription,
    list_prescriptions,
)
from app.services.prescription_service import (
    DraftValidationError,
    PractitionerProvisionError,
    PrescriptionSubmitError,
    submit_prescription,
)

router = APIRouter()
logger = logging.getLogger(__name__)

settings = get_settings()


@router.post(
    "/",
    response_model=PrescriptionSubmitResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_prescription_endpoint(
    draft: PrescriptionDraft,
    session: AuthSession | None = Depends(get_optional_auth_session),
    db: Session = Depends(get_db),
) -> PrescriptionSubmitResponse:
    """
    Submit the current draft as a prescription.

    On success the response carries the next draft (practitioner fields kept)
    and where the client should navigate. On failure the client keeps its
    draft as it was.
    """
    try:
        result = submit_prescription(db, session, draft)
    except DraftValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "errors": exc.errors},
        ) from exc
    except (PractitionerProvisionError, PrescriptionSubmitError) as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=destructive("Submission Failed", str(exc)),
        ) from exc

    if not result.submitted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to submit prescriptions.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return PrescriptionSubmitResponse(
        prescription=PrescriptionResponse.model_validate(result.prescription),
        duplicate=result.duplicate,
        notification=result.notification,
        next_draft=result.next_draft,
        redirect_to=result.redirect_to,
    )


@router.get("/", response_model=list[PrescriptionResponse])
def list_prescriptions_endpoint(
    limit: int | None = Query(None, ge=1, le=1000),
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> list[PrescriptionResponse]:
    """
    The practitioner's prescriptions, newest first.
    """
    prescriptions = list_prescriptions(
        db,
        practitioner_id=session.user_id,
        limit=limit or settings.history_default_limit,
    )
    return [PrescriptionResponse.model_validate(p) for p in prescriptions]


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
def get_prescription_endpoint(
    prescription_id: UUID,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PrescriptionResponse:
    try:
        prescription = get_prescription(
            db, practitioner_id=session.user_id, prescription_id=prescription_id
        )
    except PrescriptionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return PrescriptionResponse.model_validate(prescription)


@router.delete("/{prescription_id}", response_model=PrescriptionDeleteResponse)
def delete_prescription_endpoint(
    prescription_id: UUID,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PrescriptionDeleteResponse:
    try:
        delete_prescription(db, practitioner_id=session.user_id, prescription_id=prescription_id)
    except PrescriptionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (DeletionVerificationError, SQLAlchemyError) as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=destructive("Delete Failed", "Failed to delete prescription. Please try again."),
        ) from exc

    return PrescriptionDeleteResponse(
        id=prescription_id,
        notification=success("Prescription Deleted", "The prescription has been deleted."),
    )

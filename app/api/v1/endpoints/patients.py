# app/api/v1/endpoints/patients.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession, get_auth_session
from app.core.database import get_db
from app.schemas.notification import destructive, success
from app.schemas.patient import PatientDeleteResponse, PatientHistoryResponse, PatientSummary
from app.schemas.prescription import PrescriptionResponse
from app.services.history_service import (
    DeleteConfirmationRequiredError,
    PatientNotFoundError,
    delete_patient,
    get_patient_history,
    list_patients,
)

router = APIRouter()


@router.get("/", response_model=list[PatientSummary])
def list_patients_endpoint(
    search: str | None = Query(None),
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> list[PatientSummary]:
    """
    Patients derived from the practitioner's prescriptions, most recently
    seen first. `search` matches name, email or phone.
    """
    return list_patients(db, practitioner_id=session.user_id, search=search)


@router.get("/{patient_key}", response_model=PatientHistoryResponse)
def get_patient_endpoint(
    patient_key: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PatientHistoryResponse:
    try:
        summary, prescriptions = get_patient_history(
            db, practitioner_id=session.user_id, key=patient_key
        )
    except PatientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return PatientHistoryResponse(
        patient=summary,
        prescriptions=[PrescriptionResponse.model_validate(p) for p in prescriptions],
    )


@router.delete("/{patient_key}", response_model=PatientDeleteResponse)
def delete_patient_endpoint(
    patient_key: str,
    confirm: bool = Query(False),
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PatientDeleteResponse:
    """
    Delete the patient and all of their prescriptions. Requires `confirm=true`.
    """
    try:
        deleted = delete_patient(
            db, practitioner_id=session.user_id, key=patient_key, confirm=confirm
        )
    except DeleteConfirmationRequiredError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PatientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=destructive("Delete Failed", "Failed to delete patient. Please try again."),
        ) from exc

    return PatientDeleteResponse(
        patient_key=patient_key,
        deleted_count=deleted,
        notification=success(
            "Patient Deleted",
            f"The patient and {deleted} prescription(s) have been deleted.",
        ),
    )

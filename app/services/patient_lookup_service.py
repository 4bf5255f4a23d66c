# app/services/patient_lookup_service.py
"""
Auto-fill of the patient section from the practitioner's previous
prescriptions. Lookups are best-effort: any failure is logged and treated
as "no match" so the form keeps working.
"""
import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.prescription import Prescription
from app.schemas.notification import Notification, success
from app.schemas.patient import LookupField, PatientMatch
from app.utils.formatting import normalize_email

logger = logging.getLogger(__name__)

# Draft field that triggers a lookup -> lookup field
TRIGGER_FIELDS: dict[str, LookupField] = {
    "patient_email": LookupField.EMAIL,
    "patient_phone": LookupField.PHONE,
}


def _normalize(field: LookupField, value: str) -> str | None:
    if field is LookupField.EMAIL:
        return normalize_email(value)
    value = (value or "").strip()
    return value or None


def find_latest_by_field(
    db: Session,
    *,
    practitioner_id: UUID,
    field: LookupField,
    value: str,
) -> Prescription | None:
    """
    Most recent prescription whose patient email/phone equals `value`.
    """
    normalized = _normalize(field, value)
    if not normalized:
        return None

    column = Prescription.patient_email if field is LookupField.EMAIL else Prescription.patient_phone
    return (
        db.query(Prescription)
        .filter(
            Prescription.practitioner_id == practitioner_id,
            column == normalized,
        )
        .order_by(Prescription.created_at.desc())
        .limit(1)
        .first()
    )


def lookup_patient(
    db: Session,
    *,
    practitioner_id: UUID,
    field: LookupField,
    value: str,
) -> PatientMatch | None:
    try:
        prescription = find_latest_by_field(
            db, practitioner_id=practitioner_id, field=field, value=value
        )
    except SQLAlchemyError as e:
        logger.warning("Patient lookup by %s failed: %s", field.value, e, exc_info=True)
        db.rollback()
        return None

    if prescription is None:
        return None

    return PatientMatch(
        patient_name=prescription.patient_name,
        patient_email=prescription.patient_email,
        patient_phone=prescription.patient_phone,
        patient_address=prescription.patient_address,
        patient_gender=prescription.patient_gender,
        patient_dob=prescription.patient_dob,
    )


def match_notification(match: PatientMatch) -> Notification:
    return success(
        "Patient Found",
        f"Patient information for {match.patient_name} has been auto-filled.",
    )

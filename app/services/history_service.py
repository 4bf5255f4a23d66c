# app/services/history_service.py
"""
Read/delete side of the practitioner's prescriptions.

Patients are not stored; they are derived by grouping prescriptions on the
patient key (email when present, else name).
"""
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.prescription import Prescription
from app.schemas.patient import PatientSummary
from app.utils.datetime_utils import as_utc
from app.utils.formatting import normalize_email

logger = logging.getLogger(__name__)


class PrescriptionNotFoundError(Exception):
    pass


class PatientNotFoundError(Exception):
    pass


class DeletionVerificationError(Exception):
    pass


class DeleteConfirmationRequiredError(Exception):
    pass


def patient_key(prescription: Prescription) -> str:
    return prescription.patient_email or prescription.patient_name


def list_prescriptions(
    db: Session,
    *,
    practitioner_id: UUID,
    limit: int | None = None,
) -> list[Prescription]:
    query = (
        db.query(Prescription)
        .filter(Prescription.practitioner_id == practitioner_id)
        .order_by(Prescription.created_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_prescription(db: Session, *, practitioner_id: UUID, prescription_id: UUID) -> Prescription:
    """
    Prescriptions of other practitioners are reported as not found.
    """
    prescription = (
        db.query(Prescription)
        .filter(
            Prescription.id == prescription_id,
            Prescription.practitioner_id == practitioner_id,
        )
        .first()
    )
    if not prescription:
        raise PrescriptionNotFoundError("Prescription not found")
    return prescription


def _exists(db: Session, practitioner_id: UUID, prescription_id: UUID) -> bool:
    return (
        db.query(Prescription.id)
        .filter(
            Prescription.id == prescription_id,
            Prescription.practitioner_id == practitioner_id,
        )
        .first()
        is not None
    )


def delete_prescription(db: Session, *, practitioner_id: UUID, prescription_id: UUID) -> None:
    """
    Delete one prescription: check it exists, delete, then re-read to make
    sure it is really gone. A record that survives the delete is an error.
    """
    if not _exists(db, practitioner_id, prescription_id):
        raise PrescriptionNotFoundError("Prescription not found")

    try:
        (
            db.query(Prescription)
            .filter(
                Prescription.id == prescription_id,
                Prescription.practitioner_id == practitioner_id,
            )
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting prescription %s", prescription_id, exc_info=True)
        raise

    db.expire_all()
    if _exists(db, practitioner_id, prescription_id):
        logger.error("Prescription %s still present after delete", prescription_id)
        raise DeletionVerificationError("Prescription was not deleted. Please try again.")

    logger.info("Prescription %s deleted", prescription_id)


def group_by_patient(prescriptions: Iterable[Prescription]) -> list[PatientSummary]:
    """
    One summary per patient key. Contact and demographic fields come from
    the group's most recent prescription only; they are not merged.
    """
    groups: dict[str, list[Prescription]] = {}
    for prescription in prescriptions:
        groups.setdefault(patient_key(prescription), []).append(prescription)

    summaries = []
    for key, rows in groups.items():
        latest = max(rows, key=lambda p: as_utc(p.created_at))
        summaries.append(
            PatientSummary(
                patient_key=key,
                patient_name=latest.patient_name,
                patient_email=latest.patient_email,
                patient_phone=latest.patient_phone,
                patient_address=latest.patient_address,
                patient_gender=latest.patient_gender,
                patient_dob=latest.patient_dob,
                prescription_count=len(rows),
                latest_prescription=latest.created_at,
            )
        )

    summaries.sort(key=lambda s: as_utc(s.latest_prescription), reverse=True)
    return summaries


def _matches(summary: PatientSummary, search: str) -> bool:
    term = search.strip().lower()
    return (
        term in summary.patient_name.lower()
        or term in (summary.patient_email or "").lower()
        or term in (summary.patient_phone or "")
    )


def list_patients(
    db: Session,
    *,
    practitioner_id: UUID,
    search: str | None = None,
) -> list[PatientSummary]:
    patients = group_by_patient(list_prescriptions(db, practitioner_id=practitioner_id))
    if search and search.strip():
        patients = [p for p in patients if _matches(p, search)]
    return patients


def _patient_filter(key: str):
    """
    Rows of the patient identified by `key`: by email, or, for patients
    recorded without an email, by name.
    """
    by_name = Prescription.patient_email.is_(None) & (Prescription.patient_name == key)
    email = normalize_email(key)
    if email is None:
        return by_name
    return or_(Prescription.patient_email == email, by_name)


def get_patient_history(
    db: Session,
    *,
    practitioner_id: UUID,
    key: str,
) -> tuple[PatientSummary, list[Prescription]]:
    prescriptions = (
        db.query(Prescription)
        .filter(Prescription.practitioner_id == practitioner_id, _patient_filter(key))
        .order_by(Prescription.created_at.desc())
        .all()
    )
    if not prescriptions:
        raise PatientNotFoundError("Patient not found")
    return group_by_patient(prescriptions)[0], prescriptions


def delete_patient(
    db: Session,
    *,
    practitioner_id: UUID,
    key: str,
    confirm: bool = False,
) -> int:
    """
    Delete every prescription of one patient. Irreversible, so the caller
    must pass confirm=True. Returns the number of prescriptions deleted.
    """
    if not confirm:
        raise DeleteConfirmationRequiredError(
            "Deleting a patient removes all of their prescriptions. Confirm to continue."
        )

    try:
        deleted = (
            db.query(Prescription)
            .filter(Prescription.practitioner_id == practitioner_id, _patient_filter(key))
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error deleting patient %s", key, exc_info=True)
        raise

    if not deleted:
        raise PatientNotFoundError("Patient not found")

    db.expire_all()
    logger.info("Deleted %d prescriptions for patient %s", deleted, key)
    return deleted

# app/services/prescription_service.py
"""
Prescription submission pipeline.

    1. ensure the practitioner row exists (created from the draft if not)
    2. build the prescription record from the draft
    3. insert it, owned by the signed-in practitioner
    4. on success reset the draft (practitioner fields kept)

Step 1 always completes before step 2 starts. The two writes are separate
commits: a failure in step 3 leaves the practitioner row in place, which is
harmless and reused on retry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession
from app.forms.prescription_form import FormState, PrescriptionForm
from app.models.prescription import Prescription, PrescriptionStatus
from app.schemas.draft import PrescriptionDraft
from app.schemas.notification import Notification, success
from app.services.draft_service import save_form
from app.services.practitioner_service import ensure_practitioner
from app.utils.datetime_utils import parse_form_date
from app.utils.formatting import blank_to_none, format_address, join_name, normalize_email

logger = logging.getLogger(__name__)

HISTORY_PATH = "/admin/prescriptions"


class DraftValidationError(Exception):
    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("Please complete the required fields: " + ", ".join(sorted(errors)))


class PractitionerProvisionError(Exception):
    pass


class PrescriptionSubmitError(Exception):
    pass


@dataclass
class SubmissionResult:
    submitted: bool
    prescription: Prescription | None = None
    duplicate: bool = False
    notification: Notification | None = None
    next_draft: PrescriptionDraft | None = None
    redirect_to: str | None = None


# Largest value a 32-bit INTEGER column holds
MAX_COUNT = 2**31 - 1


def _parse_count(raw: str, *, minimum: int) -> int:
    value = int(str(raw).strip())
    if value < minimum:
        raise ValueError(f"must be at least {minimum}")
    if value > MAX_COUNT:
        raise ValueError(f"must be at most {MAX_COUNT}")
    return value


def validate_draft(draft: PrescriptionDraft) -> dict[str, Any]:
    """
    Coerce the draft's string fields into column values.
    Raises DraftValidationError listing every invalid field.
    """
    errors: dict[str, str] = {}
    values: dict[str, Any] = {}

    patient_name = join_name(draft.patient_first_name, draft.patient_last_name)
    if not patient_name:
        errors["patient_first_name"] = "Patient name is required"
    if not draft.dosage.strip():
        errors["dosage"] = "Dosage is required"
    if not draft.signature.strip():
        errors["signature"] = "Signature is required"

    try:
        values["quantity"] = _parse_count(draft.quantity, minimum=1)
    except ValueError:
        errors["quantity"] = "Quantity must be a positive whole number"

    if draft.refills.strip():
        try:
            values["refills"] = _parse_count(draft.refills, minimum=0)
        except ValueError:
            errors["refills"] = "Refills must be a whole number of zero or more"
    else:
        values["refills"] = 0

    for name in ("patient_dob", "prescription_date"):
        try:
            values[name] = parse_form_date(getattr(draft, name))
        except ValueError:
            errors[name] = "Enter a date as YYYY-MM-DD"

    if errors:
        raise DraftValidationError(errors)

    values["patient_name"] = patient_name
    return values


def practitioner_defaults(draft: PrescriptionDraft, session: AuthSession) -> dict[str, Any]:
    """Practitioner row values taken from the draft's practitioner section."""
    return {
        "full_name": draft.doctor_name.strip() or session.metadata.get("full_name") or "",
        "email": normalize_email(draft.practitioner_email) or session.email,
        "license_number": blank_to_none(draft.license_number),
        "npi_number": blank_to_none(draft.npi_number),
        "dea_number": blank_to_none(draft.dea_number),
        "clinic_name": blank_to_none(draft.clinic_name) or blank_to_none(session.metadata.get("clinic_name")),
        "clinic_address": blank_to_none(draft.clinic_address),
        "clinic_phone": blank_to_none(draft.clinic_phone),
        "clinic_fax": blank_to_none(draft.clinic_fax),
    }


def build_prescription(
    draft: PrescriptionDraft,
    *,
    practitioner_id: UUID,
    values: dict[str, Any],
) -> Prescription:
    address = format_address(
        draft.patient_street,
        draft.patient_city,
        draft.patient_state,
        draft.patient_postal_code,
        draft.patient_country,
    )
    return Prescription(
        practitioner_id=practitioner_id,
        submission_id=draft.submission_id,
        patient_name=values["patient_name"],
        patient_email=normalize_email(draft.patient_email),
        patient_phone=blank_to_none(draft.patient_phone),
        patient_address=address or None,
        patient_gender=blank_to_none(draft.patient_gender),
        patient_dob=values["patient_dob"],
        prescription_date=values["prescription_date"],
        dosage=draft.dosage.strip(),
        quantity=values["quantity"],
        refills=values["refills"],
        instructions=blank_to_none(draft.instructions),
        ingredients=blank_to_none(draft.ingredients),
        signature=draft.signature.strip(),
        status=PrescriptionStatus.PENDING,
    )


def _find_by_submission_id(db: Session, practitioner_id: UUID, submission_id: UUID | None) -> Prescription | None:
    if submission_id is None:
        return None
    return (
        db.query(Prescription)
        .filter(
            Prescription.practitioner_id == practitioner_id,
            Prescription.submission_id == submission_id,
        )
        .first()
    )


def _succeeded(
    session: AuthSession,
    draft: PrescriptionDraft,
    prescription: Prescription,
    *,
    duplicate: bool,
) -> SubmissionResult:
    form = PrescriptionForm(draft=draft, state=FormState.AUTHENTICATED)
    form.reset()
    form.ensure_prescription_date()
    save_form(session, form)

    return SubmissionResult(
        submitted=True,
        prescription=prescription,
        duplicate=duplicate,
        notification=success(
            "Prescription Submitted",
            "Your prescription has been successfully submitted.",
        ),
        next_draft=form.draft,
        redirect_to=HISTORY_PATH,
    )


def submit_prescription(
    db: Session,
    session: AuthSession | None,
    draft: PrescriptionDraft,
) -> SubmissionResult:
    """
    Run the submission pipeline for `draft`.

    Anonymous callers get a no-op result. Raises DraftValidationError,
    PractitionerProvisionError or PrescriptionSubmitError; on any error the
    caller's draft is left as it was.
    """
    if session is None:
        return SubmissionResult(submitted=False)

    values = validate_draft(draft)

    existing = _find_by_submission_id(db, session.user_id, draft.submission_id)
    if existing is not None:
        logger.info("Submission %s already stored as %s", draft.submission_id, existing.id)
        return _succeeded(session, draft, existing, duplicate=True)

    # Step 1: ensure practitioner
    try:
        practitioner = ensure_practitioner(db, session.user_id, practitioner_defaults(draft, session))
    except SQLAlchemyError as exc:
        logger.error("Error creating practitioner %s", session.user_id, exc_info=True)
        raise PractitionerProvisionError("Failed to create practitioner profile") from exc

    # Steps 2 + 3: build and insert
    prescription = build_prescription(draft, practitioner_id=practitioner.id, values=values)
    try:
        db.add(prescription)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # A concurrent retry with the same submission id won the race.
        existing = _find_by_submission_id(db, session.user_id, draft.submission_id)
        if existing is not None:
            return _succeeded(session, draft, existing, duplicate=True)
        logger.error("Error submitting prescription", exc_info=True)
        raise PrescriptionSubmitError("Failed to submit prescription") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error submitting prescription", exc_info=True)
        raise PrescriptionSubmitError("Failed to submit prescription") from exc

    db.refresh(prescription)
    logger.info("Prescription %s created by practitioner %s", prescription.id, practitioner.id)

    # Step 4
    return _succeeded(session, draft, prescription, duplicate=False)

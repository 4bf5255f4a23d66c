# app/schemas/draft.py
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.schemas.notification import Notification

PRACTITIONER_FIELDS: tuple[str, ...] = (
    "practitioner_email",
    "doctor_name",
    "license_number",
    "npi_number",
    "dea_number",
    "clinic_name",
    "clinic_address",
    "clinic_phone",
    "clinic_fax",
)

PATIENT_FIELDS: tuple[str, ...] = (
    "patient_first_name",
    "patient_last_name",
    "patient_email",
    "patient_phone",
    "patient_street",
    "patient_city",
    "patient_state",
    "patient_postal_code",
    "patient_country",
    "patient_gender",
    "patient_dob",
)

DOSAGE_OPTIONS: tuple[str, ...] = ("0.25mg", "0.5mg", "1.0mg", "1.7mg")
REFILL_OPTIONS: tuple[str, ...] = ("0", "1", "2", "3")


class PrescriptionDraft(BaseModel):
    """
    In-progress prescription form. Every field is the raw string the user
    typed; coercion and validation happen at submission.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # Practitioner
    practitioner_email: str = ""
    doctor_name: str = ""
    license_number: str = ""
    npi_number: str = ""
    dea_number: str = ""
    clinic_name: str = ""
    clinic_address: str = ""
    clinic_phone: str = ""
    clinic_fax: str = ""

    # Patient
    patient_first_name: str = ""
    patient_last_name: str = ""
    patient_email: str = ""
    patient_phone: str = ""
    patient_street: str = ""
    patient_city: str = ""
    patient_state: str = ""
    patient_postal_code: str = ""
    patient_country: str = ""
    patient_gender: str = ""
    patient_dob: str = ""

    # Prescription
    prescription_date: str = ""
    dosage: str = ""
    quantity: str = ""
    refills: str = ""
    instructions: str = ""
    ingredients: str = ""

    # Signature
    signature: str = ""

    submission_id: UUID | None = None


class DraftOptions(BaseModel):
    dosage: list[str] = list(DOSAGE_OPTIONS)
    refills: list[str] = list(REFILL_OPTIONS)


class DraftResponse(BaseModel):
    draft: PrescriptionDraft
    read_only: bool
    sign_in_required: bool
    options: DraftOptions = DraftOptions()
    notification: Notification | None = None


class DraftFieldUpdate(BaseModel):
    """`{"fields": {"patient_first_name": "John", ...}}`"""

    fields: dict[str, str]

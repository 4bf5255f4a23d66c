# app/forms/prescription_form.py
"""
Prescription form state machine.

Holds one in-progress draft and mediates every change to it:

    UNAUTHENTICATED --sign_in(profile)--> AUTHENTICATED
    AUTHENTICATED   --sign_out()-------> UNAUTHENTICATED

While unauthenticated the draft is presented read-only: edits are rejected
and the practitioner section is replaced by a sign-in call-to-action.
Signing in pre-fills the practitioner-owned fields from the profile.

reset() is asymmetric: practitioner-owned fields survive so consecutive
prescriptions do not require re-entering the practitioner's own data.
"""
from __future__ import annotations

from datetime import date
from enum import Enum

from app.schemas.draft import PRACTITIONER_FIELDS, PrescriptionDraft
from app.schemas.patient import PatientMatch
from app.schemas.practitioner import PractitionerProfile
from app.utils.datetime_utils import format_form_date, utc_now
from app.utils.formatting import split_name

DRAFT_FIELDS: frozenset[str] = frozenset(PrescriptionDraft.model_fields) - {"submission_id"}


class FormState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class UnknownDraftFieldError(ValueError):
    pass


class DraftReadOnlyError(Exception):
    pass


def profile_to_fields(profile: PractitionerProfile) -> dict[str, str]:
    """Map a practitioner profile onto the draft's practitioner-owned fields."""
    return {
        "practitioner_email": profile.email or "",
        "doctor_name": profile.full_name or "",
        "license_number": profile.license_number or "",
        "npi_number": profile.npi_number or "",
        "dea_number": profile.dea_number or "",
        "clinic_name": profile.clinic_name or "",
        "clinic_address": profile.clinic_address or "",
        "clinic_phone": profile.clinic_phone or "",
        "clinic_fax": profile.clinic_fax or "",
    }


class PrescriptionForm:
    def __init__(
        self,
        draft: PrescriptionDraft | None = None,
        state: FormState = FormState.UNAUTHENTICATED,
    ):
        self.state = state
        self.draft = draft.model_copy() if draft is not None else PrescriptionDraft()
        self._date_initialized = False

    # -- state ---------------------------------------------------------------

    @property
    def is_read_only(self) -> bool:
        return self.state is FormState.UNAUTHENTICATED

    @property
    def sign_in_required(self) -> bool:
        return self.is_read_only

    def sign_in(self, profile: PractitionerProfile) -> None:
        self.state = FormState.AUTHENTICATED
        self.load_practitioner_defaults(profile)

    def sign_out(self) -> None:
        self.state = FormState.UNAUTHENTICATED
        self.draft = self.draft.model_copy(update={name: "" for name in PRACTITIONER_FIELDS})

    # -- transitions ---------------------------------------------------------

    def initialize(self) -> PrescriptionDraft:
        self.draft = PrescriptionDraft()
        self._date_initialized = False
        return self.draft

    def load_practitioner_defaults(self, profile: PractitionerProfile) -> PrescriptionDraft:
        """
        Practitioner fields always come from the profile; patient and
        prescription fields are never touched.
        """
        self.draft = self.draft.model_copy(update=profile_to_fields(profile))
        return self.draft

    def set_field(self, name: str, value: str) -> PrescriptionDraft:
        if self.is_read_only:
            raise DraftReadOnlyError("Sign in to edit prescriptions")
        if not isinstance(name, str) or name not in DRAFT_FIELDS:
            raise UnknownDraftFieldError(f"Unknown draft field '{name}'")
        self.draft = self.draft.model_copy(update={name: "" if value is None else str(value)})
        return self.draft

    def set_fields(self, fields: dict[str, str]) -> PrescriptionDraft:
        for name in fields:
            if name not in DRAFT_FIELDS:
                raise UnknownDraftFieldError(f"Unknown draft field '{name}'")
        for name, value in fields.items():
            self.set_field(name, value)
        return self.draft

    def reset(self) -> PrescriptionDraft:
        kept = {name: getattr(self.draft, name) for name in PRACTITIONER_FIELDS}
        self.draft = PrescriptionDraft(**kept)
        self._date_initialized = False
        return self.draft

    def ensure_prescription_date(self, today: date | None = None) -> PrescriptionDraft:
        """
        Default the prescription date to today, once, and only if empty.
        """
        if self._date_initialized:
            return self.draft
        self._date_initialized = True
        if not self.draft.prescription_date:
            today = today or utc_now().date()
            self.draft = self.draft.model_copy(update={"prescription_date": today.isoformat()})
        return self.draft

    def apply_patient_match(self, match: PatientMatch) -> PrescriptionDraft:
        """
        Overwrite the patient section with a prior prescription's values.
        Prescription and signature fields are left untouched.
        """
        first_name, last_name = split_name(match.patient_name)
        update = {
            "patient_first_name": first_name,
            "patient_last_name": last_name,
            "patient_email": match.patient_email or "",
            "patient_phone": match.patient_phone or "",
            # The stored address is already formatted; keep it in one field.
            "patient_street": match.patient_address or "",
            "patient_city": "",
            "patient_state": "",
            "patient_postal_code": "",
            "patient_country": "",
            "patient_gender": match.patient_gender or "",
            "patient_dob": format_form_date(match.patient_dob),
        }
        self.draft = self.draft.model_copy(update=update)
        return self.draft

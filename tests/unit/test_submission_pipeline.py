"""
Unit tests for submit_prescription() and its steps.
"""
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.core.auth_session import AuthSession
from app.models.practitioner import Practitioner
from app.models.prescription import Prescription, PrescriptionStatus
from app.schemas.draft import PrescriptionDraft
from app.services import prescription_service
from app.services.practitioner_service import ensure_practitioner
from app.services.prescription_service import (
    HISTORY_PATH,
    DraftValidationError,
    PractitionerProvisionError,
    PrescriptionSubmitError,
    submit_prescription,
    validate_draft,
)


@pytest.fixture
def doctor_session(doctor):
    return AuthSession(user=doctor.user, claims={})


@pytest.fixture
def new_session(new_user):
    return AuthSession(user=new_user, claims={})


def _count(db, model):
    return db.query(model).count()


class TestValidation:

    def test_counts_are_coerced_to_int(self, valid_draft):
        values = validate_draft(PrescriptionDraft(**valid_draft))
        assert values["quantity"] == 2
        assert values["refills"] == 1

    def test_blank_refills_means_zero(self, valid_draft):
        values = validate_draft(PrescriptionDraft(**{**valid_draft, "refills": ""}))
        assert values["refills"] == 0

    def test_every_problem_is_reported(self, valid_draft):
        draft = PrescriptionDraft(
            **{
                **valid_draft,
                "patient_first_name": "",
                "patient_last_name": "",
                "dosage": " ",
                "signature": "",
                "quantity": "zero",
                "refills": "-1",
                "patient_dob": "02/04/1979",
            }
        )
        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(draft)

        assert set(exc_info.value.errors) == {
            "patient_first_name",
            "dosage",
            "signature",
            "quantity",
            "refills",
            "patient_dob",
        }

    def test_quantity_must_be_positive(self, valid_draft):
        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(PrescriptionDraft(**{**valid_draft, "quantity": "0"}))
        assert "quantity" in exc_info.value.errors

    def test_counts_beyond_integer_column_are_rejected(self, valid_draft):
        draft = PrescriptionDraft(**{**valid_draft, "quantity": str(2**64), "refills": "3000000000"})

        with pytest.raises(DraftValidationError) as exc_info:
            validate_draft(draft)

        assert set(exc_info.value.errors) == {"quantity", "refills"}

    def test_largest_count_is_accepted(self, valid_draft):
        values = validate_draft(PrescriptionDraft(**{**valid_draft, "quantity": str(2**31 - 1)}))
        assert values["quantity"] == 2**31 - 1


class TestSubmit:

    def test_anonymous_submit_is_a_no_op(self, db_session, valid_draft):
        result = submit_prescription(db_session, None, PrescriptionDraft(**valid_draft))

        assert result.submitted is False
        assert _count(db_session, Prescription) == 0

    def test_record_is_built_from_draft(self, db_session, doctor, doctor_session, valid_draft):
        result = submit_prescription(db_session, doctor_session, PrescriptionDraft(**valid_draft))
        prescription = result.prescription

        assert result.submitted and not result.duplicate
        assert prescription.practitioner_id == doctor.id
        assert prescription.patient_name == "John Smith"
        assert prescription.patient_email == "john.smith@mailbox.org"
        assert prescription.patient_address == "12 Oak St, Austin, TX, USA"
        assert prescription.quantity == 2
        assert isinstance(prescription.refills, int)
        assert prescription.ingredients is None
        assert prescription.status == PrescriptionStatus.PENDING
        assert prescription.prescription_date.isoformat() == "2026-01-15"

    def test_success_resets_draft_and_redirects(self, db_session, doctor_session, valid_draft, fake_cache):
        draft = PrescriptionDraft(**{**valid_draft, "doctor_name": "Dr. Jane Doe", "clinic_name": "Main Street Clinic"})
        result = submit_prescription(db_session, doctor_session, draft)

        assert result.redirect_to == HISTORY_PATH
        assert result.notification.title == "Prescription Submitted"
        assert result.next_draft.doctor_name == "Dr. Jane Doe"
        assert result.next_draft.clinic_name == "Main Street Clinic"
        assert result.next_draft.patient_first_name == ""
        assert result.next_draft.signature == ""
        assert result.next_draft.prescription_date != ""
        assert f"draft:{doctor_session.user_id}" in fake_cache.store

    def test_first_submission_provisions_practitioner(self, db_session, new_user, new_session, valid_draft):
        assert _count(db_session, Practitioner) == 0

        submit_prescription(db_session, new_session, PrescriptionDraft(**valid_draft))
        submit_prescription(db_session, new_session, PrescriptionDraft(**valid_draft))

        practitioners = db_session.query(Practitioner).all()
        assert len(practitioners) == 1
        assert practitioners[0].id == new_user.id
        assert practitioners[0].full_name == "Dr. Sam Lee"
        assert _count(db_session, Prescription) == 2

    def test_provision_failure_aborts_before_insert(self, db_session, new_session, valid_draft, monkeypatch):
        def failing_ensure(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("database is down"))

        monkeypatch.setattr(prescription_service, "ensure_practitioner", failing_ensure)

        with pytest.raises(PractitionerProvisionError, match="Failed to create practitioner profile"):
            submit_prescription(db_session, new_session, PrescriptionDraft(**valid_draft))
        assert _count(db_session, Prescription) == 0

    def test_insert_failure_keeps_cached_draft(self, db_session, doctor_session, valid_draft, fake_cache, monkeypatch):
        original_build = prescription_service.build_prescription

        def broken_build(*args, **kwargs):
            prescription = original_build(*args, **kwargs)
            prescription.quantity = 0  # violates the CHECK constraint
            return prescription

        monkeypatch.setattr(prescription_service, "build_prescription", broken_build)

        with pytest.raises(PrescriptionSubmitError, match="Failed to submit prescription"):
            submit_prescription(db_session, doctor_session, PrescriptionDraft(**valid_draft))
        assert _count(db_session, Prescription) == 0
        assert fake_cache.store == {}

    def test_same_submission_id_is_stored_once(self, db_session, doctor_session, valid_draft):
        draft = PrescriptionDraft(**valid_draft, submission_id=uuid4())

        first = submit_prescription(db_session, doctor_session, draft)
        second = submit_prescription(db_session, doctor_session, draft)

        assert second.duplicate is True
        assert second.prescription.id == first.prescription.id
        assert _count(db_session, Prescription) == 1

    def test_without_submission_id_each_submit_is_new(self, db_session, doctor_session, valid_draft):
        submit_prescription(db_session, doctor_session, PrescriptionDraft(**valid_draft))
        submit_prescription(db_session, doctor_session, PrescriptionDraft(**valid_draft))
        assert _count(db_session, Prescription) == 2


def test_ensure_practitioner_is_idempotent(db_session, new_user):
    first = ensure_practitioner(db_session, new_user.id, {"full_name": "Dr. Sam Lee"})
    second = ensure_practitioner(db_session, new_user.id, {"full_name": "Someone Else"})

    assert first.id == second.id == new_user.id
    assert second.full_name == "Dr. Sam Lee"
    assert _count(db_session, Practitioner) == 1

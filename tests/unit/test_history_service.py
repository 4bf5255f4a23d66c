"""
Unit tests for prescription history and derived patients.
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.models.prescription import Prescription
from app.services import history_service
from app.services.history_service import (
    DeleteConfirmationRequiredError,
    DeletionVerificationError,
    PatientNotFoundError,
    PrescriptionNotFoundError,
    delete_patient,
    delete_prescription,
    get_patient_history,
    get_prescription,
    group_by_patient,
    list_patients,
    list_prescriptions,
)
from tests.factories import PractitionerFactory, PrescriptionFactory

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def _at(days: int) -> datetime:
    return BASE_TIME + timedelta(days=days)


@pytest.fixture
def history(doctor):
    """Three visits for John (by email), one for Maria, one email-less patient."""
    return {
        "john_old": PrescriptionFactory(practitioner=doctor, created_at=_at(0), patient_phone="555-0000"),
        "john_new": PrescriptionFactory(practitioner=doctor, created_at=_at(5), patient_phone="555-0101"),
        "john_mid": PrescriptionFactory(practitioner=doctor, created_at=_at(2)),
        "maria": PrescriptionFactory(
            practitioner=doctor,
            created_at=_at(3),
            patient_name="Maria Garcia",
            patient_email="maria@mailbox.org",
            patient_phone="555-0102",
        ),
        "lena": PrescriptionFactory(
            practitioner=doctor,
            created_at=_at(1),
            patient_name="Lena Novak",
            patient_email=None,
            patient_phone=None,
        ),
    }


class TestListing:

    def test_newest_first(self, db_session, doctor, history):
        rows = list_prescriptions(db_session, practitioner_id=doctor.id)
        assert [r.id for r in rows] == [
            history[k].id for k in ("john_new", "maria", "john_mid", "lena", "john_old")
        ]

    def test_limit(self, db_session, doctor, history):
        assert len(list_prescriptions(db_session, practitioner_id=doctor.id, limit=2)) == 2

    def test_empty_history_is_valid(self, db_session, doctor):
        assert list_prescriptions(db_session, practitioner_id=doctor.id) == []

    def test_other_practitioners_rows_are_hidden(self, db_session, doctor, history):
        other = PractitionerFactory()
        PrescriptionFactory(practitioner=other)

        assert len(list_prescriptions(db_session, practitioner_id=doctor.id)) == 5
        with pytest.raises(PrescriptionNotFoundError):
            get_prescription(db_session, practitioner_id=other.id, prescription_id=history["maria"].id)


class TestGrouping:

    def test_count_and_latest_per_patient(self, db_session, doctor, history):
        summaries = {s.patient_key: s for s in group_by_patient(db_session.query(Prescription).all())}

        john = summaries["john.smith@mailbox.org"]
        assert john.prescription_count == 3
        assert john.latest_prescription.replace(tzinfo=None) == _at(5).replace(tzinfo=None)
        assert john.patient_phone == "555-0101"

        assert summaries["Lena Novak"].prescription_count == 1
        assert summaries["Lena Novak"].patient_email is None

    def test_counts_add_up(self, db_session, doctor, history):
        summaries = group_by_patient(db_session.query(Prescription).all())
        assert len(summaries) == 3
        assert sum(s.prescription_count for s in summaries) == 5

    def test_sorted_by_latest_visit(self, db_session, doctor, history):
        keys = [s.patient_key for s in list_patients(db_session, practitioner_id=doctor.id)]
        assert keys == ["john.smith@mailbox.org", "maria@mailbox.org", "Lena Novak"]

    def test_search_matches_name_email_and_phone(self, db_session, doctor, history):
        def keys(term):
            return [s.patient_key for s in list_patients(db_session, practitioner_id=doctor.id, search=term)]

        assert keys("garcia") == ["maria@mailbox.org"]
        assert keys("MAILBOX") == ["john.smith@mailbox.org", "maria@mailbox.org"]
        assert keys("0102") == ["maria@mailbox.org"]
        assert keys("nobody") == []

    def test_patient_history(self, db_session, doctor, history):
        summary, prescriptions = get_patient_history(
            db_session, practitioner_id=doctor.id, key="john.smith@mailbox.org"
        )
        assert summary.prescription_count == 3
        assert [p.id for p in prescriptions] == [history[k].id for k in ("john_new", "john_mid", "john_old")]

        with pytest.raises(PatientNotFoundError):
            get_patient_history(db_session, practitioner_id=doctor.id, key="ghost@mailbox.org")


class TestDeletePrescription:

    def test_delete_removes_row(self, db_session, doctor, history):
        prescription_id = history["maria"].id

        delete_prescription(db_session, practitioner_id=doctor.id, prescription_id=prescription_id)
        assert db_session.get(Prescription, prescription_id) is None

    def test_unknown_id(self, db_session, doctor):
        with pytest.raises(PrescriptionNotFoundError):
            delete_prescription(db_session, practitioner_id=doctor.id, prescription_id=uuid4())

    def test_row_surviving_delete_is_an_error(self, db_session, doctor, history, monkeypatch):
        monkeypatch.setattr(history_service, "_exists", lambda *args: True)

        with pytest.raises(DeletionVerificationError):
            delete_prescription(db_session, practitioner_id=doctor.id, prescription_id=history["maria"].id)


class TestDeletePatient:

    def test_requires_confirmation(self, db_session, doctor, history):
        with pytest.raises(DeleteConfirmationRequiredError):
            delete_patient(db_session, practitioner_id=doctor.id, key="john.smith@mailbox.org")
        assert db_session.query(Prescription).count() == 5

    def test_deletes_every_prescription_of_patient(self, db_session, doctor, history):
        deleted = delete_patient(
            db_session, practitioner_id=doctor.id, key="john.smith@mailbox.org", confirm=True
        )

        assert deleted == 3
        remaining = db_session.query(Prescription).filter(
            Prescription.patient_email == "john.smith@mailbox.org"
        )
        assert remaining.count() == 0
        assert db_session.query(Prescription).count() == 2

    def test_patient_without_email_is_keyed_by_name(self, db_session, doctor, history):
        assert delete_patient(db_session, practitioner_id=doctor.id, key="Lena Novak", confirm=True) == 1

    def test_leaves_other_practitioners_alone(self, db_session, doctor, history):
        other = PractitionerFactory()
        PrescriptionFactory(practitioner=other)

        delete_patient(db_session, practitioner_id=doctor.id, key="john.smith@mailbox.org", confirm=True)
        assert db_session.query(Prescription).filter(Prescription.practitioner_id == other.id).count() == 1

    def test_unknown_patient(self, db_session, doctor):
        with pytest.raises(PatientNotFoundError):
            delete_patient(db_session, practitioner_id=doctor.id, key="ghost@mailbox.org", confirm=True)

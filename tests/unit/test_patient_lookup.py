from datetime import datetime, timezone

from sqlalchemy.exc import OperationalError

from app.schemas.patient import LookupField
from app.services import patient_lookup_service
from app.services.patient_lookup_service import lookup_patient, match_notification
from tests.factories import PractitionerFactory, PrescriptionFactory


class TestLookupPatient:

    def test_most_recent_match_wins(self, db_session, doctor):
        PrescriptionFactory(
            practitioner=doctor,
            patient_gender="other",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        PrescriptionFactory(
            practitioner=doctor,
            patient_gender="male",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )

        match = lookup_patient(
            db_session,
            practitioner_id=doctor.id,
            field=LookupField.EMAIL,
            value="John.Smith@mailbox.org ",
        )

        assert match.patient_name == "John Smith"
        assert match.patient_gender == "male"

    def test_lookup_by_phone(self, db_session, doctor):
        PrescriptionFactory(practitioner=doctor, patient_email=None, patient_phone="555-0199")

        match = lookup_patient(
            db_session, practitioner_id=doctor.id, field=LookupField.PHONE, value="555-0199"
        )
        assert match.patient_phone == "555-0199"
        assert match.patient_email is None

    def test_no_match_is_none(self, db_session, doctor):
        assert lookup_patient(
            db_session, practitioner_id=doctor.id, field=LookupField.EMAIL, value="new@mailbox.org"
        ) is None

    def test_blank_value_is_none(self, db_session, doctor):
        PrescriptionFactory(practitioner=doctor)
        assert lookup_patient(
            db_session, practitioner_id=doctor.id, field=LookupField.PHONE, value="  "
        ) is None

    def test_only_own_prescriptions_are_searched(self, db_session, doctor):
        PrescriptionFactory(practitioner=PractitionerFactory())
        assert lookup_patient(
            db_session, practitioner_id=doctor.id, field=LookupField.EMAIL, value="john.smith@mailbox.org"
        ) is None

    def test_query_error_is_swallowed(self, db_session, doctor, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(patient_lookup_service, "find_latest_by_field", broken)

        assert lookup_patient(
            db_session, practitioner_id=doctor.id, field=LookupField.EMAIL, value="john.smith@mailbox.org"
        ) is None


def test_match_notification_names_patient(db_session, doctor):
    PrescriptionFactory(practitioner=doctor)
    match = lookup_patient(
        db_session, practitioner_id=doctor.id, field=LookupField.EMAIL, value="john.smith@mailbox.org"
    )

    notification = match_notification(match)
    assert notification.variant == "success"
    assert notification.title == "Patient Found"
    assert "John Smith" in notification.description

"""
factory-boy factories shared by unit/ and integration/.

The session is bound per test by the `db_session` fixture in conftest.py.
"""
from datetime import date

import factory
from factory.alchemy import SQLAlchemyModelFactory

from app.core.security import create_access_token, get_password_hash
from app.models.practitioner import Practitioner
from app.models.prescription import Prescription, PrescriptionStatus
from app.models.user import User

DEFAULT_PASSWORD = "Secret@12345"


class BaseFactory(SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"


class UserFactory(BaseFactory):
    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"doctor{n}@clinic.org")
    hashed_password = factory.LazyFunction(lambda: get_password_hash(DEFAULT_PASSWORD))
    user_metadata = factory.LazyAttribute(lambda o: {"full_name": "Dr. Jane Doe", "clinic_name": "Main Street Clinic"})
    is_active = True


class PractitionerFactory(BaseFactory):
    class Meta:
        model = Practitioner

    user = factory.SubFactory(UserFactory)
    id = factory.SelfAttribute("user.id")
    full_name = "Dr. Jane Doe"
    email = factory.SelfAttribute("user.email")
    license_number = "MD-12345"
    npi_number = "1234567890"
    dea_number = "AD1234563"
    clinic_name = "Main Street Clinic"
    clinic_address = "100 Main St, Austin, TX, 73301, USA"
    clinic_phone = "555-0100"
    clinic_fax = "555-0199"


class PrescriptionFactory(BaseFactory):
    class Meta:
        model = Prescription

    practitioner = factory.SubFactory(PractitionerFactory)
    practitioner_id = factory.SelfAttribute("practitioner.id")
    patient_name = "John Smith"
    patient_email = "john.smith@mailbox.org"
    patient_phone = "555-0101"
    patient_address = "12 Oak St, Austin, TX, 73301"
    patient_gender = "male"
    patient_dob = date(1979, 4, 2)
    prescription_date = date(2026, 1, 15)
    dosage = "0.5mg"
    quantity = 1
    refills = 0
    instructions = "Inject once weekly."
    signature = "Dr. Jane Doe"
    status = PrescriptionStatus.PENDING


def bearer(user_id, email) -> dict[str, str]:
    """Authorization header for a freshly issued access token."""
    token = create_access_token(subject=str(user_id), email=email)
    return {"Authorization": f"Bearer {token}"}


ALL_FACTORIES = (UserFactory, PractitionerFactory, PrescriptionFactory)

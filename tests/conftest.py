"""
Shared fixtures for all tests.

The app reads its settings at import time, so the environment is set up
before anything from `app` is imported: a throwaway SQLite file, a fast
password hash, no Redis, and a short lookup debounce.
"""
import os
import tempfile
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="prescription-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PASSWORD_HASH_SCHEME"] = "pbkdf2_sha256"
os.environ["LOOKUP_DEBOUNCE_MS"] = "100"
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.database import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models import practitioner, prescription, user  # noqa: E402,F401
from tests.factories import ALL_FACTORIES, PractitionerFactory, UserFactory, bearer  # noqa: E402


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """A session for arranging and inspecting data; factories use it too."""
    db = SessionLocal()
    for factory_class in ALL_FACTORIES:
        factory_class._meta.sqlalchemy_session = db
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        for factory_class in ALL_FACTORIES:
            factory_class._meta.sqlalchemy_session = None


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class FakeCache:
    """In-memory stand-in for the Redis helpers (get/set/delete)."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key: str):
        return self.store.get(key)

    def set(self, key: str, value: str, ttl: int = 60) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, key: str) -> bool:
        self.store.pop(key, None)
        self.ttls.pop(key, None)
        return True


@pytest.fixture
def fake_cache(monkeypatch):
    cache = FakeCache()
    for module in ("app.services.draft_service", "app.services.auth_service"):
        monkeypatch.setattr(f"{module}.cache_get", cache.get)
        monkeypatch.setattr(f"{module}.cache_set", cache.set)
    monkeypatch.setattr("app.services.draft_service.cache_delete", cache.delete)
    return cache


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

@pytest.fixture
def client(db_session):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def doctor(db_session):
    """A signed-up user with a stored practitioner profile."""
    return PractitionerFactory()


@pytest.fixture
def new_user(db_session):
    """A signed-up user who has not saved a profile or submitted yet."""
    return UserFactory(user_metadata={"full_name": "Dr. Sam Lee", "clinic_name": "Harbor Clinic"})


@pytest.fixture
def doctor_headers(doctor):
    return bearer(doctor.id, doctor.email)


@pytest.fixture
def new_user_headers(new_user):
    return bearer(new_user.id, new_user.email)


@pytest.fixture
def valid_draft():
    """A complete draft as the form would submit it."""
    return {
        "patient_first_name": "John",
        "patient_last_name": "Smith",
        "patient_email": "John.Smith@Mailbox.org",
        "patient_phone": "555-0101",
        "patient_street": "12 Oak St",
        "patient_city": "Austin",
        "patient_state": "TX",
        "patient_postal_code": "",
        "patient_country": "USA",
        "patient_gender": "male",
        "patient_dob": "1979-04-02",
        "prescription_date": "2026-01-15",
        "dosage": "0.5mg",
        "quantity": "2",
        "refills": "1",
        "instructions": "Inject once weekly.",
        "ingredients": "",
        "signature": "Dr. Jane Doe",
    }

#!/usr/bin/env python3
# scripts/seed_demo_data.py
"""
Prescription demo data seeder + reset.

- One demo practitioner login (demo@clinic.org / Demo@12345) with a stored
  profile.
- A handful of demo patients, each with several prescriptions spread over
  the past few months so history, grouping and auto-fill have data.
- Reset removes the demo practitioner and everything they own.

Run:
  python -m scripts.seed_demo_data --seed
  python -m scripts.seed_demo_data --seed --prescriptions 40
  python -m scripts.seed_demo_data --reset
"""
from __future__ import annotations

import argparse
import logging
import random
import sys
from datetime import date, timedelta
from pathlib import Path

from sqlalchemy.orm import Session

# Allow "python -m scripts.seed_demo_data" from repo root
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from app.core.database import session_scope  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.models.practitioner import Practitioner  # noqa: E402
from app.models.prescription import Prescription, PrescriptionStatus  # noqa: E402
from app.models.user import User  # noqa: E402
from app.schemas.draft import DOSAGE_OPTIONS  # noqa: E402
from app.utils.datetime_utils import utc_now  # noqa: E402
from app.utils.formatting import format_address  # noqa: E402

logger = logging.getLogger("seed_demo_data")

DEMO_EMAIL = "demo@clinic.org"
DEMO_PASSWORD = "Demo@12345"

DEMO_PATIENTS = [
    # first, last, email, phone, street, city, state, postal, gender, dob
    ("John", "Smith", "john.smith@mailbox.org", "555-0101", "12 Oak St", "Austin", "TX", "73301", "male", date(1979, 4, 2)),
    ("Maria", "Garcia", "maria.garcia@mailbox.org", "555-0102", "80 Pine Ave", "Denver", "CO", "80014", "female", date(1985, 11, 19)),
    ("Wei", "Chen", None, "555-0103", "5 Elm Rd", "Seattle", "WA", "98101", "male", date(1992, 1, 7)),
    ("Aisha", "Khan", "aisha.khan@mailbox.org", None, "301 Cedar Ln", "Boston", "MA", "02108", "female", date(1968, 6, 30)),
    ("Lena", "Novak", None, None, "", "", "", "", "female", None),
]

DEMO_INSTRUCTIONS = [
    "Inject once weekly, same day each week.",
    "Inject once weekly. Rotate injection site.",
    "Titrate per follow-up visit.",
]


def _get_or_create_demo_user(db: Session) -> User:
    user = db.query(User).filter(User.email == DEMO_EMAIL).first()
    if user:
        return user

    user = User(
        email=DEMO_EMAIL,
        hashed_password=get_password_hash(DEMO_PASSWORD),
        user_metadata={"full_name": "Dr. Demo Practitioner", "clinic_name": "Demo Clinic"},
    )
    db.add(user)
    db.flush()

    db.add(
        Practitioner(
            id=user.id,
            full_name="Dr. Demo Practitioner",
            email=DEMO_EMAIL,
            license_number="MD-000123",
            npi_number="1234567890",
            dea_number="AD1234563",
            clinic_name="Demo Clinic",
            clinic_address=format_address("100 Main St", "Austin", "TX", "73301", "USA"),
            clinic_phone="555-0100",
            clinic_fax="555-0199",
        )
    )
    db.flush()
    logger.info("Created demo practitioner %s", user.id)
    return user


def seed(db: Session, prescriptions: int, rng: random.Random) -> int:
    user = _get_or_create_demo_user(db)
    now = utc_now()

    for _ in range(prescriptions):
        first, last, email, phone, street, city, state, postal, gender, dob = rng.choice(DEMO_PATIENTS)
        created_at = now - timedelta(days=rng.randint(0, 120), minutes=rng.randint(0, 600))
        db.add(
            Prescription(
                practitioner_id=user.id,
                patient_name=f"{first} {last}",
                patient_email=email,
                patient_phone=phone,
                patient_address=format_address(street, city, state, postal, "USA" if street else "") or None,
                patient_gender=gender,
                patient_dob=dob,
                prescription_date=created_at.date(),
                dosage=rng.choice(DOSAGE_OPTIONS),
                quantity=rng.randint(1, 4),
                refills=rng.randint(0, 3),
                instructions=rng.choice(DEMO_INSTRUCTIONS),
                signature="Dr. Demo Practitioner",
                status=rng.choice(list(PrescriptionStatus)),
                created_at=created_at,
            )
        )

    logger.info("Seeded %d prescriptions for %s", prescriptions, DEMO_EMAIL)
    return prescriptions


def reset(db: Session) -> None:
    user = db.query(User).filter(User.email == DEMO_EMAIL).first()
    if not user:
        logger.info("Demo practitioner not found, nothing to reset.")
        return

    deleted = (
        db.query(Prescription)
        .filter(Prescription.practitioner_id == user.id)
        .delete(synchronize_session=False)
    )
    db.query(Practitioner).filter(Practitioner.id == user.id).delete(synchronize_session=False)
    db.delete(user)
    logger.info("Removed demo practitioner and %d prescriptions", deleted)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed / reset prescription demo data")
    parser.add_argument("--seed", action="store_true", help="Seed the demo practitioner and prescriptions")
    parser.add_argument("--reset", action="store_true", help="Delete the demo practitioner and their data")
    parser.add_argument("--prescriptions", type=int, default=25, help="Prescriptions to create (default: 25)")
    parser.add_argument("--random-seed", type=int, default=7, help="RNG seed for repeatable data")
    args = parser.parse_args()

    if not (args.seed or args.reset):
        parser.print_help()
        raise SystemExit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.reset:
        with session_scope() as db:
            reset(db)

    if args.seed:
        with session_scope() as db:
            seed(db, args.prescriptions, random.Random(args.random_seed))
        print(f"Demo login: {DEMO_EMAIL} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()

# app/services/practitioner_service.py
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession
from app.models.practitioner import Practitioner
from app.schemas.practitioner import PractitionerProfile, PractitionerProfileUpdate
from app.services.auth_service import update_user_metadata
from app.utils.datetime_utils import utc_now
from app.utils.formatting import blank_to_none, format_address

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = (
    "full_name",
    "email",
    "license_number",
    "npi_number",
    "dea_number",
    "clinic_name",
    "clinic_address",
    "clinic_phone",
    "clinic_fax",
)


def get_practitioner(db: Session, practitioner_id: UUID) -> Practitioner | None:
    return db.query(Practitioner).filter(Practitioner.id == practitioner_id).first()


def get_profile(db: Session, session: AuthSession) -> PractitionerProfile:
    """
    Stored profile if present, otherwise one built from sign-up metadata so
    the form can still pre-fill the practitioner's name and clinic.
    """
    practitioner = get_practitioner(db, session.user_id)
    if practitioner:
        return PractitionerProfile.model_validate(practitioner)

    metadata = session.metadata
    return PractitionerProfile(
        id=session.user_id,
        full_name=metadata.get("full_name") or "",
        email=session.email,
        clinic_name=metadata.get("clinic_name") or None,
        stored=False,
    )


def _clinic_address(payload: PractitionerProfileUpdate) -> str | None:
    components = (
        payload.clinic_street,
        payload.clinic_city,
        payload.clinic_state,
        payload.clinic_postal_code,
        payload.clinic_country,
    )
    if any(blank_to_none(c) for c in components):
        return format_address(*components)
    return blank_to_none(payload.clinic_address)


def save_profile(
    db: Session,
    session: AuthSession,
    payload: PractitionerProfileUpdate,
) -> Practitioner:
    """
    Insert the practitioner row on first save, update it afterwards.
    Name and clinic are mirrored into identity metadata.
    """
    values: dict[str, Any] = {
        "full_name": payload.full_name.strip(),
        "email": session.email,
        "license_number": blank_to_none(payload.license_number),
        "npi_number": blank_to_none(payload.npi_number),
        "dea_number": blank_to_none(payload.dea_number),
        "clinic_name": blank_to_none(payload.clinic_name),
        "clinic_address": _clinic_address(payload),
        "clinic_phone": blank_to_none(payload.clinic_phone),
        "clinic_fax": blank_to_none(payload.clinic_fax),
    }

    practitioner = get_practitioner(db, session.user_id)
    try:
        if practitioner is None:
            practitioner = Practitioner(id=session.user_id, **values)
            db.add(practitioner)
        else:
            for field, value in values.items():
                setattr(practitioner, field, value)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error saving profile for practitioner %s", session.user_id, exc_info=True)
        raise

    db.refresh(practitioner)

    update_user_metadata(
        db,
        session.user,
        {"full_name": practitioner.full_name, "clinic_name": practitioner.clinic_name or ""},
    )
    return practitioner


def _insert_ignoring_conflict(db: Session, values: dict[str, Any]) -> None:
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(Practitioner).values(**values).on_conflict_do_nothing(
            index_elements=[Practitioner.id]
        )
    elif dialect == "sqlite":
        stmt = sqlite.insert(Practitioner).values(**values).on_conflict_do_nothing(
            index_elements=[Practitioner.id]
        )
    else:
        if get_practitioner(db, values["id"]) is not None:
            return
        db.add(Practitioner(**values))
        db.flush()
        return
    db.execute(stmt)


def ensure_practitioner(
    db: Session,
    practitioner_id: UUID,
    defaults: dict[str, Any],
) -> Practitioner:
    """
    Return the practitioner row, creating it from `defaults` if absent.

    Uses INSERT ... ON CONFLICT DO NOTHING so two concurrent first
    submissions for the same identity still end with a single row.
    Commits; raises SQLAlchemyError on failure after rolling back.
    """
    existing = get_practitioner(db, practitioner_id)
    if existing is not None:
        return existing

    now = utc_now()
    values = {column: defaults.get(column) for column in PROFILE_COLUMNS}
    values["full_name"] = values["full_name"] or ""
    values.update(id=practitioner_id, created_at=now, updated_at=now)

    try:
        _insert_ignoring_conflict(db, values)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    practitioner = get_practitioner(db, practitioner_id)
    if practitioner is None:
        raise SQLAlchemyError(f"Practitioner {practitioner_id} missing after insert")
    logger.info("Practitioner %s ready", practitioner_id)
    return practitioner

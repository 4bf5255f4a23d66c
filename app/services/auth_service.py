import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.redis import cache_get, cache_set
from app.core.security import (
    create_access_token,
    get_password_hash,
    seconds_until_expiry,
    verify_password,
)
from app.models.user import User
from app.schemas.auth import LoginRequest, SignUpRequest

logger = logging.getLogger(__name__)

REVOKED_TOKEN_PREFIX = "revoked-token:"


class AuthenticationError(Exception):
    pass


class EmailAlreadyRegisteredError(Exception):
    pass


def get_user_by_email(db: Session, email: str) -> User | None:
    """
    Find a user by email.
    Email comparison is case-insensitive.
    """
    return db.query(User).filter(func.lower(User.email) == func.lower(email)).first()


def sign_up(db: Session, payload: SignUpRequest) -> User:
    """
    Create an identity with its practitioner metadata (full_name, clinic_name).
    The practitioner profile row itself is created later, on profile save or
    on the first prescription submission.
    """
    if get_user_by_email(db, payload.email):
        raise EmailAlreadyRegisteredError("An account with this email already exists")

    user = User(
        email=payload.email.lower(),
        hashed_password=get_password_hash(payload.password),
        user_metadata={
            "full_name": payload.full_name,
            "clinic_name": payload.clinic_name,
        },
        is_active=True,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise EmailAlreadyRegisteredError("An account with this email already exists") from exc
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, login_data: LoginRequest) -> User:
    """
    Authenticate a user given email and password.
    """
    user = get_user_by_email(db, login_data.email)
    if not user or not user.is_active:
        raise AuthenticationError("Invalid email or password")

    if not verify_password(login_data.password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")

    return user


def issue_access_token_for_user(user: User) -> str:
    return create_access_token(subject=str(user.id), email=user.email)


def revoke_token(payload: dict[str, Any]) -> bool:
    """
    Remember a token's jti until it would have expired anyway.
    Returns False in degraded mode (no Redis): the token stays valid until expiry.
    """
    jti = payload.get("jti")
    if not jti:
        return False
    revoked = cache_set(f"{REVOKED_TOKEN_PREFIX}{jti}", "1", ttl=seconds_until_expiry(payload))
    if not revoked:
        logger.warning("Could not revoke token %s (cache unavailable); it expires on its own", jti)
    return revoked


def is_token_revoked(payload: dict[str, Any]) -> bool:
    jti = payload.get("jti")
    if not jti:
        return False
    return cache_get(f"{REVOKED_TOKEN_PREFIX}{jti}") is not None


def update_user_metadata(db: Session, user: User, changes: dict[str, Any]) -> User:
    """
    Shallow-merge `changes` into the user's metadata.
    """
    user.user_metadata = {**(user.user_metadata or {}), **changes}
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Failed to update metadata for user %s", user.id, exc_info=True)
        raise
    db.refresh(user)
    return user

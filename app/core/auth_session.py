# app/core/auth_session.py
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user, oauth2_scheme_optional, resolve_user_from_token
from app.core.database import get_db
from app.models.user import User


class AuthSession:
    """
    Explicit handle for the signed-in practitioner.

    - user:   the authenticated identity
    - claims: the decoded access token (used for sign-out)

    Services receive this object instead of reading ambient auth state.
    """

    def __init__(self, user: User, claims: dict[str, Any]):
        self.user = user
        self.claims = claims

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def metadata(self) -> dict[str, Any]:
        return self.user.user_metadata or {}


def get_auth_session(
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
) -> AuthSession:
    """
    Resolve the session for endpoints that require a signed-in practitioner.
    """
    user, claims = current
    return AuthSession(user=user, claims=claims)


def get_optional_auth_session(
    token: str | None = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> AuthSession | None:
    """
    Anonymous visitors get None (read-only form); a bad token is still a 401.
    """
    if not token:
        return None
    user, claims = resolve_user_from_token(db, token)
    return AuthSession(user=user, claims=claims)

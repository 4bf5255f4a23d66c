import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import decode_token
from app.models.user import User
from app.schemas.auth import LoginRequest, SignUpRequest, TokenResponse
from app.schemas.user import CurrentUserResponse, UserMetadataUpdate
from app.services.auth_service import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    authenticate_user,
    is_token_revoked,
    issue_access_token_for_user,
    revoke_token,
    sign_up,
    update_user_metadata,
)

router = APIRouter()
logger = logging.getLogger(__name__)

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/auth/login")
oauth2_scheme_optional = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/auth/login",
    auto_error=False,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_user_from_token(db: Session, token: str) -> tuple[User, dict[str, Any]]:
    """
    Decode a bearer token and load its user.
    Raises 401 for bad, expired or revoked tokens and for inactive users.
    """
    try:
        payload = decode_token(token)
    except ValueError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if is_token_revoked(payload):
        raise _unauthorized("Token has been revoked")

    try:
        user = db.query(User).filter(User.id == UUID(user_id)).first()
    except ValueError:
        raise _unauthorized("Invalid token payload")

    if not user or not user.is_active:
        raise _unauthorized("User not found")

    return user, payload


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> tuple[User, dict[str, Any]]:
    """
    Dependency to retrieve the current user and token claims from a JWT bearer token.
    """
    return resolve_user_from_token(db, token)


def _current_user_response(user: User) -> CurrentUserResponse:
    return CurrentUserResponse(
        id=user.id,
        email=user.email,
        metadata=user.user_metadata or {},
    )


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["auth"],
)
def signup(
    payload: SignUpRequest,
    db: Session = Depends(get_db),
) -> TokenResponse:
    try:
        user = sign_up(db, payload)
    except EmailAlreadyRegisteredError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return TokenResponse(access_token=issue_access_token_for_user(user))


@router.post("/login", response_model=TokenResponse, tags=["auth"])
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    OAuth2-style login: `username` carries the email.
    """
    try:
        login_data = LoginRequest(email=form_data.username, password=form_data.password)
        user = authenticate_user(db, login_data)
    except (ValidationError, AuthenticationError) as exc:
        logger.info("Failed sign-in for %s", form_data.username)
        raise _unauthorized("Invalid email or password") from exc

    return TokenResponse(access_token=issue_access_token_for_user(user))


@router.post("/logout", tags=["auth"])
def logout(
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
) -> dict:
    user, claims = current
    revoked = revoke_token(claims)
    logger.info("User %s signed out", user.id)
    return {"status": "signed-out", "revoked": revoked}


@router.get("/me", response_model=CurrentUserResponse, tags=["auth"])
def read_current_user(
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
) -> CurrentUserResponse:
    """
    Return the current authenticated user.
    """
    user, _ = current
    return _current_user_response(user)


@router.patch("/me/metadata", response_model=CurrentUserResponse, tags=["auth"])
def patch_current_user_metadata(
    payload: UserMetadataUpdate,
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CurrentUserResponse:
    user, _ = current
    user = update_user_metadata(db, user, payload.changes())
    return _current_user_response(user)

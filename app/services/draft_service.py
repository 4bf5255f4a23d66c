# app/services/draft_service.py
"""
Server-side home of the prescription form.

Drafts are cached per practitioner so a half-filled form survives a page
reload. Without Redis the draft is still computed and returned, just not
remembered between requests.
"""
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.auth_session import AuthSession
from app.core.config import get_settings
from app.core.redis import cache_delete, cache_get, cache_set
from app.forms.prescription_form import PrescriptionForm
from app.schemas.draft import DraftResponse, PrescriptionDraft
from app.schemas.notification import Notification
from app.services.practitioner_service import get_profile

logger = logging.getLogger(__name__)


def _draft_key(session: AuthSession) -> str:
    return f"draft:{session.user_id}"


def _load_cached_draft(session: AuthSession) -> PrescriptionDraft | None:
    raw = cache_get(_draft_key(session))
    if not raw:
        return None
    try:
        return PrescriptionDraft.model_validate_json(raw)
    except ValidationError:
        logger.warning("Discarding unreadable cached draft for %s", session.user_id)
        cache_delete(_draft_key(session))
        return None


def save_form(session: AuthSession, form: PrescriptionForm) -> bool:
    settings = get_settings()
    return cache_set(
        _draft_key(session),
        form.draft.model_dump_json(),
        ttl=settings.draft_cache_ttl_seconds,
    )


def load_form(db: Session, session: AuthSession | None) -> PrescriptionForm:
    """
    Anonymous visitors get a blank read-only form. Practitioners get their
    cached draft (or a new one) with practitioner fields refreshed from the
    profile and the prescription date defaulted to today.
    """
    if session is None:
        form = PrescriptionForm()
        form.initialize()
        return form

    form = PrescriptionForm(draft=_load_cached_draft(session))
    form.sign_in(get_profile(db, session))
    form.ensure_prescription_date()
    return form


def update_draft(db: Session, session: AuthSession, fields: dict[str, str]) -> PrescriptionForm:
    form = load_form(db, session)
    form.set_fields(fields)
    save_form(session, form)
    return form


def reset_draft(db: Session, session: AuthSession) -> PrescriptionForm:
    form = load_form(db, session)
    form.reset()
    form.ensure_prescription_date()
    save_form(session, form)
    return form


def build_draft_response(
    form: PrescriptionForm,
    notification: Notification | None = None,
) -> DraftResponse:
    return DraftResponse(
        draft=form.draft,
        read_only=form.is_read_only,
        sign_in_required=form.sign_in_required,
        notification=notification,
    )

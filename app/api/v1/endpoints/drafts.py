# app/api/v1/endpoints/drafts.py
"""
Prescription draft endpoints.

The REST routes serve one-shot edits. The `/live` websocket is the
interactive form: every keystroke-level edit is echoed back, and edits to
the patient email/phone trigger a debounced auto-fill lookup.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import resolve_user_from_token
from app.core.auth_session import AuthSession, get_auth_session, get_optional_auth_session
from app.core.config import get_settings
from app.core.database import get_db, session_scope
from app.forms.prescription_form import DraftReadOnlyError, PrescriptionForm, UnknownDraftFieldError
from app.schemas.draft import DraftFieldUpdate, DraftResponse
from app.schemas.patient import LookupField, PatientLookupResponse, PatientMatch
from app.services.draft_service import build_draft_response, load_form, reset_draft, save_form, update_draft
from app.services.patient_lookup_service import TRIGGER_FIELDS, lookup_patient, match_notification
from app.utils.debounce import Debouncer

router = APIRouter()
logger = logging.getLogger(__name__)

settings = get_settings()

# Close code for a rejected websocket credential
WS_POLICY_VIOLATION = 1008


@router.get("/current", response_model=DraftResponse)
def read_current_draft(
    session: AuthSession | None = Depends(get_optional_auth_session),
    db: Session = Depends(get_db),
) -> DraftResponse:
    """
    Anonymous visitors get a blank read-only draft with `sign_in_required`.
    """
    return build_draft_response(load_form(db, session))


@router.patch("/current", response_model=DraftResponse)
def patch_current_draft(
    payload: DraftFieldUpdate,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> DraftResponse:
    try:
        form = update_draft(db, session, payload.fields)
    except UnknownDraftFieldError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return build_draft_response(form)


@router.post("/current/reset", response_model=DraftResponse)
def reset_current_draft(
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> DraftResponse:
    """
    Clear the patient, prescription and signature sections.
    Practitioner fields are kept.
    """
    return build_draft_response(reset_draft(db, session))


@router.get("/lookup", response_model=PatientLookupResponse)
def lookup_previous_patient(
    field: LookupField = Query(...),
    value: str = Query(""),
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
) -> PatientLookupResponse:
    """
    Find the patient of the most recent prescription with this email or phone.
    No match is not an error.
    """
    match = lookup_patient(db, practitioner_id=session.user_id, field=field, value=value)
    if match is None:
        return PatientLookupResponse()
    return PatientLookupResponse(match=match, notification=match_notification(match))


# ---------------------------------------------------------------------------
# Live form channel
# ---------------------------------------------------------------------------


def _resolve_ws_session(token: str | None) -> AuthSession | None:
    if not token:
        return None
    with session_scope() as db:
        user, claims = resolve_user_from_token(db, token)
        # Keep the loaded user usable after the scope closes.
        db.expunge(user)
    return AuthSession(user=user, claims=claims)


def _load_ws_form(session: AuthSession | None) -> PrescriptionForm:
    with session_scope() as db:
        return load_form(db, session)


def _lookup_ws(session: AuthSession, field: LookupField, value: str) -> PatientMatch | None:
    with session_scope() as db:
        return lookup_patient(db, practitioner_id=session.user_id, field=field, value=value)


class LiveDraftChannel:
    """
    One connected form. Owns the form state for the lifetime of the socket.
    """

    def __init__(self, websocket: WebSocket, session: AuthSession | None, form: PrescriptionForm):
        self.websocket = websocket
        self.session = session
        self.form = form
        self.debouncer = Debouncer(settings.lookup_debounce_ms / 1000)
        self._send_lock = asyncio.Lock()

    async def send(self, message: dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(message)

    async def send_draft(self) -> None:
        response = build_draft_response(self.form)
        await self.send({"type": "draft", **response.model_dump(mode="json")})

    async def send_error(self, detail: str) -> None:
        await self.send({"type": "error", "detail": detail})

    async def _persist(self) -> None:
        if self.session is not None:
            await run_in_threadpool(save_form, self.session, self.form)

    async def handle(self, message: Any) -> None:
        kind = message.get("type") if isinstance(message, dict) else None
        if kind == "set_field":
            name = message.get("name")
            if not isinstance(name, str):
                await self.send_error("Field name must be a string")
                return
            await self.set_field(name, message.get("value", ""))
        elif kind == "reset":
            await self.reset()
        else:
            await self.send_error(f"Unknown message type '{kind}'")

    async def receive(self) -> None:
        text = await self.websocket.receive_text()
        try:
            message = json.loads(text)
        except ValueError:
            await self.send_error("Messages must be JSON objects")
            return
        await self.handle(message)

    async def set_field(self, name: str, value: Any) -> None:
        try:
            self.form.set_field(name, value)
        except (DraftReadOnlyError, UnknownDraftFieldError) as exc:
            await self.send_error(str(exc))
            return

        await self._persist()
        await self.send_draft()

        field = TRIGGER_FIELDS.get(name)
        if field is None:
            return
        value = getattr(self.form.draft, name)
        if value.strip():
            self.debouncer.schedule(self.autofill, name, field, value)
        else:
            self.debouncer.cancel()

    async def reset(self) -> None:
        if self.form.is_read_only:
            await self.send_error("Sign in to edit prescriptions")
            return
        self.debouncer.cancel()
        self.form.reset()
        self.form.ensure_prescription_date()
        await self._persist()
        await self.send_draft()

    async def autofill(self, name: str, field: LookupField, value: str) -> None:
        match = await run_in_threadpool(_lookup_ws, self.session, field, value)
        if match is None:
            return
        if getattr(self.form.draft, name) != value:
            logger.debug("Discarding stale %s lookup for %r", field.value, value)
            return

        self.form.apply_patient_match(match)
        await self._persist()
        response = build_draft_response(self.form)
        await self.send(
            {
                "type": "autofill",
                "draft": response.draft.model_dump(mode="json"),
                "notification": match_notification(match).model_dump(mode="json"),
            }
        )

    async def run(self) -> None:
        await self.send_draft()
        try:
            while True:
                await self.receive()
        except WebSocketDisconnect:
            logger.debug("Live draft channel closed")
        finally:
            self.debouncer.cancel()


@router.websocket("/live")
async def live_draft(websocket: WebSocket, token: str | None = Query(None)) -> None:
    await websocket.accept()

    try:
        session = await run_in_threadpool(_resolve_ws_session, token)
    except HTTPException as exc:
        await websocket.send_json({"type": "error", "detail": exc.detail})
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    form = await run_in_threadpool(_load_ws_form, session)
    await LiveDraftChannel(websocket, session, form).run()

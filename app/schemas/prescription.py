# app/schemas/prescription.py
from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.prescription import PrescriptionStatus
from app.schemas.draft import PrescriptionDraft
from app.schemas.notification import Notification


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    practitioner_id: UUID
    submission_id: UUID | None = None
    patient_name: str
    patient_email: str | None = None
    patient_phone: str | None = None
    patient_address: str | None = None
    patient_gender: str | None = None
    patient_dob: date | None = None
    prescription_date: date | None = None
    dosage: str
    quantity: int
    refills: int
    instructions: str | None = None
    ingredients: str | None = None
    signature: str
    status: PrescriptionStatus
    created_at: datetime


class PrescriptionSubmitResponse(BaseModel):
    prescription: PrescriptionResponse
    duplicate: bool = False
    notification: Notification
    next_draft: PrescriptionDraft
    redirect_to: str


class PrescriptionDeleteResponse(BaseModel):
    id: UUID
    notification: Notification

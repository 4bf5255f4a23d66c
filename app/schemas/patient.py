# app/schemas/patient.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel

from app.schemas.notification import Notification
from app.schemas.prescription import PrescriptionResponse


class LookupField(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


class PatientMatch(BaseModel):
    """Denormalised patient fields of the most recent matching prescription."""

    patient_name: str
    patient_email: str | None = None
    patient_phone: str | None = None
    patient_address: str | None = None
    patient_gender: str | None = None
    patient_dob: date | None = None


class PatientLookupResponse(BaseModel):
    match: PatientMatch | None = None
    notification: Notification | None = None


class PatientSummary(BaseModel):
    patient_key: str
    patient_name: str
    patient_email: str | None = None
    patient_phone: str | None = None
    patient_address: str | None = None
    patient_gender: str | None = None
    patient_dob: date | None = None
    prescription_count: int
    latest_prescription: datetime


class PatientHistoryResponse(BaseModel):
    patient: PatientSummary
    prescriptions: list[PrescriptionResponse]


class PatientDeleteResponse(BaseModel):
    patient_key: str
    deleted_count: int
    notification: Notification

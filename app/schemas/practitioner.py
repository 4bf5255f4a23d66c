# app/schemas/practitioner.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PractitionerProfile(BaseModel):
    """
    Practitioner-owned data used to pre-fill the prescription form.
    `stored` is False when the profile was built from sign-up metadata only.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str = ""
    email: str | None = None
    license_number: str | None = None
    npi_number: str | None = None
    dea_number: str | None = None
    clinic_name: str | None = None
    clinic_address: str | None = None
    clinic_phone: str | None = None
    clinic_fax: str | None = None
    stored: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PractitionerProfileUpdate(BaseModel):
    full_name: str
    license_number: str | None = None
    npi_number: str | None = None
    dea_number: str | None = None
    clinic_name: str | None = None
    clinic_phone: str | None = None
    clinic_fax: str | None = None

    # Either a flat address or its components
    clinic_address: str | None = None
    clinic_street: str | None = None
    clinic_city: str | None = None
    clinic_state: str | None = None
    clinic_postal_code: str | None = None
    clinic_country: str | None = None

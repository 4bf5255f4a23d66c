# app/schemas/dashboard.py
from pydantic import BaseModel

from app.schemas.prescription import PrescriptionResponse


class DashboardStats(BaseModel):
    practitioner_name: str = ""
    total_prescriptions: int = 0
    total_patients: int = 0
    recent_prescriptions: list[PrescriptionResponse] = []

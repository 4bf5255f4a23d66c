# app/models/prescription.py
import uuid
from datetime import date, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.practitioner import Practitioner
from app.utils.datetime_utils import utc_now


class PrescriptionStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Prescription(Base):
    __tablename__ = "prescriptions"
    __table_args__ = (
        UniqueConstraint("practitioner_id", "submission_id", name="uq_prescriptions_submission"),
        CheckConstraint("quantity >= 1", name="ck_prescriptions_quantity_positive"),
        CheckConstraint("refills >= 0", name="ck_prescriptions_refills_non_negative"),
        Index("ix_prescriptions_practitioner_created", "practitioner_id", "created_at"),
        Index("ix_prescriptions_patient_email", "patient_email"),
        Index("ix_prescriptions_patient_phone", "patient_phone"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    practitioner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("practitioners.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Client-generated id used to deduplicate retried submissions
    submission_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    # Patient snapshot (patients are derived from these rows, not stored)
    patient_name: Mapped[str] = mapped_column(String(200), nullable=False)
    patient_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    patient_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    patient_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    patient_gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    patient_dob: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Prescription
    prescription_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    dosage: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "0.5mg"
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    refills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    ingredients: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature: Mapped[str] = mapped_column(String(200), nullable=False)

    status: Mapped[PrescriptionStatus] = mapped_column(
        Enum(
            PrescriptionStatus,
            name="prescription_status_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=PrescriptionStatus.PENDING,
        server_default=text("'pending'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    practitioner: Mapped["Practitioner"] = relationship("Practitioner", backref="prescriptions")

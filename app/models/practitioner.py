# app/models/practitioner.py
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.user import User
from app.utils.datetime_utils import utc_now


class Practitioner(Base):
    """
    Practitioner profile. Exactly one row per identity: the primary key is
    the user id, so the row can be created lazily on first submission.
    """

    __tablename__ = "practitioners"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Credentials
    license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    npi_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    dea_number: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Clinic
    clinic_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    clinic_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    clinic_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    clinic_fax: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    user: Mapped["User"] = relationship("User")

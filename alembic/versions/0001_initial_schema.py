"""initial_schema

Revision ID: initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("user_metadata", sa.JSON(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "practitioners",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("license_number", sa.String(length=50), nullable=True),
        sa.Column("npi_number", sa.String(length=20), nullable=True),
        sa.Column("dea_number", sa.String(length=20), nullable=True),
        sa.Column("clinic_name", sa.String(length=200), nullable=True),
        sa.Column("clinic_address", sa.String(length=500), nullable=True),
        sa.Column("clinic_phone", sa.String(length=50), nullable=True),
        sa.Column("clinic_fax", sa.String(length=50), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "prescriptions",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("practitioner_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("submission_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("patient_name", sa.String(length=200), nullable=False),
        sa.Column("patient_email", sa.String(length=255), nullable=True),
        sa.Column("patient_phone", sa.String(length=50), nullable=True),
        sa.Column("patient_address", sa.String(length=500), nullable=True),
        sa.Column("patient_gender", sa.String(length=20), nullable=True),
        sa.Column("patient_dob", sa.Date(), nullable=True),
        sa.Column("prescription_date", sa.Date(), nullable=True),
        sa.Column("dosage", sa.String(length=100), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("refills", sa.Integer(), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("ingredients", sa.Text(), nullable=True),
        sa.Column("signature", sa.String(length=200), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="prescription_status_enum"),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["practitioner_id"], ["practitioners.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("practitioner_id", "submission_id", name="uq_prescriptions_submission"),
        sa.CheckConstraint("quantity >= 1", name="ck_prescriptions_quantity_positive"),
        sa.CheckConstraint("refills >= 0", name="ck_prescriptions_refills_non_negative"),
    )

    op.create_index(
        "ix_prescriptions_practitioner_created",
        "prescriptions",
        ["practitioner_id", "created_at"],
    )
    op.create_index("ix_prescriptions_patient_email", "prescriptions", ["patient_email"])
    op.create_index("ix_prescriptions_patient_phone", "prescriptions", ["patient_phone"])


def downgrade() -> None:
    op.drop_index("ix_prescriptions_patient_phone", table_name="prescriptions")
    op.drop_index("ix_prescriptions_patient_email", table_name="prescriptions")
    op.drop_index("ix_prescriptions_practitioner_created", table_name="prescriptions")
    op.drop_table("prescriptions")
    op.drop_table("practitioners")
    op.drop_table("users")
    sa.Enum(name="prescription_status_enum").drop(op.get_bind(), checkfirst=True)

"""Create practices, patients, providers, appointments and clinical tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "practices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("practice_name", sa.String(length=255), nullable=False),
        sa.Column("contact", sa.JSON(), nullable=True),
        sa.Column("location", sa.JSON(), nullable=True),
        sa.Column("stats", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_practices_practice_name", "practices", ["practice_name"])

    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("contact", sa.JSON(), nullable=True),
        sa.Column("insurance", sa.JSON(), nullable=True),
        sa.Column("medical_history", sa.JSON(), nullable=True),
        sa.Column("stats", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_patients_practice_id", "patients", ["practice_id"])

    op.create_table(
        "providers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=50), nullable=True),
        sa.Column("specialty", sa.String(length=200), nullable=True),
        sa.Column("contact", sa.JSON(), nullable=True),
        sa.Column("schedule", sa.JSON(), nullable=True),
        sa.Column(
            "appointment_duration_minutes", sa.Integer(), server_default=sa.text("30"), nullable=True
        ),
        sa.Column("stats", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_providers_practice_id", "providers", ["practice_id"])
    op.create_index("ix_providers_specialty", "providers", ["specialty"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=False),
        sa.Column("patient_id", sa.Uuid(), nullable=False),
        sa.Column("provider_id", sa.Uuid(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column(
            "appointment_type", sa.String(length=50), server_default="consultation", nullable=False
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="scheduled", nullable=False),
        sa.Column("clinical_notes", sa.JSON(), nullable=False),
        sa.Column("vitals", sa.JSON(), nullable=True),
        sa.Column("cancelled_by", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reschedule_history", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'checked-in', 'in-progress', "
            "'completed', 'cancelled', 'no-show')",
            name="appointments_status_check",
        ),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_appointments_practice_id", "appointments", ["practice_id"])
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_provider_id", "appointments", ["provider_id"])
    op.create_index("ix_appointments_appointment_date", "appointments", ["appointment_date"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    # One active booking per provider slot
    op.create_index(
        "uq_appointments_provider_slot",
        "appointments",
        ["provider_id", "appointment_date", "start_time"],
        unique=True,
        postgresql_where=sa.text("status NOT IN ('cancelled', 'no-show')"),
        sqlite_where=sa.text("status NOT IN ('cancelled', 'no-show')"),
    )

    for table, extra in (
        (
            "medical_records",
            [
                sa.Column("record_type", sa.String(length=50), nullable=False),
                sa.Column("summary", sa.Text(), nullable=True),
                sa.Column("data", sa.JSON(), nullable=True),
            ],
        ),
        (
            "prescriptions",
            [
                sa.Column("medication", sa.String(length=200), nullable=False),
                sa.Column("dosage", sa.String(length=100), nullable=True),
                sa.Column("instructions", sa.Text(), nullable=True),
            ],
        ),
        (
            "treatments",
            [
                sa.Column("procedure", sa.String(length=200), nullable=False),
                sa.Column("notes", sa.Text(), nullable=True),
                sa.Column("status", sa.String(length=20), server_default="planned", nullable=False),
            ],
        ),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("appointment_id", sa.Uuid(), nullable=True),
            sa.Column("patient_id", sa.Uuid(), nullable=False),
            *extra,
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            ),
            sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_appointment_id", table, ["appointment_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    for table in ("treatments", "prescriptions", "medical_records"):
        op.drop_index(f"ix_{table}_appointment_id", table_name=table)
        op.drop_table(table)

    op.drop_index("uq_appointments_provider_slot", table_name="appointments")
    op.drop_index("ix_appointments_status", table_name="appointments")
    op.drop_index("ix_appointments_appointment_date", table_name="appointments")
    op.drop_index("ix_appointments_provider_id", table_name="appointments")
    op.drop_index("ix_appointments_patient_id", table_name="appointments")
    op.drop_index("ix_appointments_practice_id", table_name="appointments")
    op.drop_table("appointments")

    op.drop_index("ix_providers_specialty", table_name="providers")
    op.drop_index("ix_providers_practice_id", table_name="providers")
    op.drop_table("providers")

    op.drop_index("ix_patients_practice_id", table_name="patients")
    op.drop_table("patients")

    op.drop_index("ix_practices_practice_name", table_name="practices")
    op.drop_table("practices")

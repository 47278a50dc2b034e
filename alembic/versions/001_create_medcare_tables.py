"""Create users, camps, registrations, and payments tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema for the camp management API.
How:   UUID primary keys, TIMESTAMP WITH TIME ZONE, check constraints on the
       cached participant counter and on rating values.

Rollback: downgrade() drops all four tables (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("uid", sa.String(128), nullable=False, comment="External identity provider id"),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("uid", name="uq_users_uid"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "camps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("fees", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("healthcare_professional", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("organizer_email", sa.String(320), nullable=False),
        sa.Column("organizer_name", sa.String(255), nullable=True),
        sa.Column("participant_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_camps"),
        sa.CheckConstraint("participant_count >= 0", name="ck_camps_participant_count_non_negative"),
    )
    op.create_index("ix_camps_category", "camps", ["category"])
    op.create_index("ix_camps_organizer_email", "camps", ["organizer_email"])
    op.create_index(
        "idx_camps_participant_count",
        "camps",
        [sa.text("participant_count DESC")],
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("camp_id", sa.Uuid(), nullable=False),
        sa.Column("participant_email", sa.String(320), nullable=False),
        sa.Column("participant_name", sa.String(255), nullable=True),
        sa.Column("payment_method_id", sa.String(255), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default=sa.text("'Active'")),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("rating_text", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_registrations"),
        sa.ForeignKeyConstraint(
            ["camp_id"], ["camps.id"], name="fk_registrations_camp_id", ondelete="CASCADE"
        ),
        sa.CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_registrations_rating_range",
        ),
    )
    op.create_index("ix_registrations_camp_id", "registrations", ["camp_id"])
    op.create_index("ix_registrations_participant_email", "registrations", ["participant_email"])
    op.create_index("ix_registrations_payment_method_id", "registrations", ["payment_method_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("payer_email", sa.String(320), nullable=False),
        sa.Column("camp_id", sa.Uuid(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("payment_method_id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default=sa.text("'Active'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
    )
    op.create_index("ix_payments_payer_email", "payments", ["payer_email"])
    op.create_index("ix_payments_payment_method_id", "payments", ["payment_method_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("registrations")
    op.drop_table("camps")
    op.drop_table("users")

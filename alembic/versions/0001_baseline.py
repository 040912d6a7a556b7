"""Baseline migration - form definitions, submissions and payments

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-17

Creates admin and submitter identities, form definitions (forms, columns,
bindings, options, validation rules), submission values and payments, and
seeds the validation catalog.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def _active() -> sa.Column:
    return sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False)


def upgrade() -> None:
    # ==========================================================================
    # Identities
    # ==========================================================================
    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Integer(), server_default="2", nullable=False),
        _active(),
        _timestamp("created_at"),
    )
    op.create_table(
        "submitters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("identifier", sa.String(255), nullable=False, unique=True),
        _active(),
        sa.Column("is_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("external_uid", sa.String(255), nullable=True),
        _timestamp("verified_at", nullable=True),
        _timestamp("created_at"),
    )

    # ==========================================================================
    # Form definitions
    # ==========================================================================
    op.create_table(
        "forms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("admin_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("end_date", nullable=True),
        sa.Column("fee", sa.Numeric(10, 2), nullable=True),
        _active(),
        sa.Column("banner_image", sa.String(255), nullable=True),
    )
    op.create_index("idx_forms_owner", "forms", ["owner_id"])
    op.create_index("idx_forms_owner_active", "forms", ["owner_id", "is_active"])

    op.create_table(
        "dynamic_columns",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("data_type", sa.String(50), nullable=False),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("admin_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _active(),
        _timestamp("created_at"),
    )
    op.create_index("idx_columns_owner", "dynamic_columns", ["owner_id"])

    op.create_table(
        "form_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "column_id",
            sa.Integer(),
            sa.ForeignKey("dynamic_columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sequence_no", sa.Integer(), server_default="1", nullable=False),
        sa.Column("form_no", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("admin_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _active(),
        sa.Column("is_read_only", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("banner_image", sa.String(255), nullable=True),
    )
    op.create_index(
        "idx_form_details_form", "form_details", ["form_id", "form_no", "sequence_no"]
    )
    op.create_index("idx_form_details_column", "form_details", ["column_id"])
    op.create_index(
        "uq_form_details_active_column",
        "form_details",
        ["form_id", "form_no", "column_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "column_options",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column(
            "column_id",
            sa.Integer(),
            sa.ForeignKey("dynamic_columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("admin_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _active(),
    )
    op.create_index(
        "idx_column_options_scope", "column_options", ["column_id", "form_id", "kind"]
    )

    validation_types = op.create_table(
        "validation_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
    )
    op.create_table(
        "validation_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "validation_type_id",
            sa.Integer(),
            sa.ForeignKey("validation_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "column_id",
            sa.Integer(),
            sa.ForeignKey("dynamic_columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
        ),
        _active(),
    )
    op.create_index("idx_validation_rules_form", "validation_rules", ["form_id", "column_id"])

    # ==========================================================================
    # Submissions + payments
    # ==========================================================================
    op.create_table(
        "form_values",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("submission_id", sa.Uuid(), nullable=False),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "column_id",
            sa.Integer(),
            sa.ForeignKey("dynamic_columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "submitter_id",
            sa.Integer(),
            sa.ForeignKey("submitters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("value", sa.Text(), nullable=False),
        _active(),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_form_values_submission", "form_values", ["submission_id"])
    op.create_index(
        "idx_form_values_form_submitter",
        "form_values",
        ["form_id", "submitter_id", "is_active"],
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("submission_id", sa.Uuid(), nullable=False),
        sa.Column(
            "submitter_id",
            sa.Integer(),
            sa.ForeignKey("submitters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("gateway_order_id", sa.String(100), nullable=False),
        sa.Column("gateway_payment_id", sa.String(100), nullable=False),
        sa.Column("gateway_signature", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _timestamp("paid_at"),
        _active(),
        sa.UniqueConstraint("submission_id", name="uq_payments_submission"),
        sa.UniqueConstraint("gateway_payment_id", name="uq_payments_gateway_payment"),
    )
    op.create_index("idx_payments_form", "payments", ["form_id"])

    op.bulk_insert(
        validation_types,
        [{"name": "required"}, {"name": "email"}, {"name": "phone"}, {"name": "numeric"}],
    )


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("form_values")
    op.drop_table("validation_rules")
    op.drop_table("validation_types")
    op.drop_table("column_options")
    op.drop_table("form_details")
    op.drop_table("dynamic_columns")
    op.drop_table("forms")
    op.drop_table("submitters")
    op.drop_table("admin_users")

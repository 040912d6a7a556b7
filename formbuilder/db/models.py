"""SQLAlchemy ORM models for form definitions, submitters, submissions and payments."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formbuilder.db.base import Base
from formbuilder.db.enums import DEFAULT_ADMIN_ROLE, PaymentStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Identities
# =============================================================================

class AdminUser(Base):
    """Administrator who owns forms and columns."""

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_ADMIN_ROLE, server_default=str(DEFAULT_ADMIN_ROLE), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )


class Submitter(Base):
    """End-user identified by an email address or phone number."""

    __tablename__ = "submitters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    identifier: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)
    is_verified: Mapped[bool] = mapped_column(
        default=False, server_default=false(), nullable=False
    )
    # Identity-provider uid recorded when verification happens out of band
    external_uid: Mapped[str | None] = mapped_column(String(255), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )


# =============================================================================
# Form definitions
# =============================================================================

class Form(Base):
    """A named, ownable form definition. Soft-deleted via ``is_active``."""

    __tablename__ = "forms"
    __table_args__ = (
        Index("idx_forms_owner", "owner_id"),
        Index("idx_forms_owner_active", "owner_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    end_date: Mapped[datetime | None] = mapped_column(nullable=True)
    # Null or zero means the form is free
    fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)
    banner_image: Mapped[str | None] = mapped_column(String(255), nullable=True)

    owner: Mapped["AdminUser"] = relationship()

    @property
    def requires_payment(self) -> bool:
        return self.fee is not None and self.fee > 0


class DynamicColumn(Base):
    """Reusable typed column owned by an administrator."""

    __tablename__ = "dynamic_columns"
    __table_args__ = (Index("idx_columns_owner", "owner_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    data_type: Mapped[str] = mapped_column(String(50), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )


class FormColumnBinding(Base):
    """Places a column into a form (and sub-form ``form_no``) at a sequence position."""

    __tablename__ = "form_details"
    __table_args__ = (
        Index("idx_form_details_form", "form_id", "form_no", "sequence_no"),
        Index("idx_form_details_column", "column_id"),
        Index(
            "uq_form_details_active_column",
            "form_id",
            "form_no",
            "column_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    form_id: Mapped[int] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    column_id: Mapped[int] = mapped_column(
        ForeignKey("dynamic_columns.id", ondelete="CASCADE"), nullable=False
    )
    sequence_no: Mapped[int] = mapped_column(
        Integer, default=1, server_default="1", nullable=False
    )
    form_no: Mapped[int] = mapped_column(Integer, default=1, server_default="1", nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)
    is_read_only: Mapped[bool] = mapped_column(
        default=False, server_default=false(), nullable=False
    )
    banner_image: Mapped[str | None] = mapped_column(String(255), nullable=True)

    form: Mapped["Form"] = relationship()
    column: Mapped["DynamicColumn"] = relationship()


class ColumnOption(Base):
    """Selectable value of a dropdown/checkbox/radio column within one form."""

    __tablename__ = "column_options"
    __table_args__ = (
        Index("idx_column_options_scope", "column_id", "form_id", "kind"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    column_id: Mapped[int] = mapped_column(
        ForeignKey("dynamic_columns.id", ondelete="CASCADE"), nullable=False
    )
    form_id: Mapped[int] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)


class ValidationType(Base):
    """Fixed validation catalog (required, email, ...)."""

    __tablename__ = "validation_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)


class ValidationRule(Base):
    """Applies a catalog validation to a column-in-form."""

    __tablename__ = "validation_rules"
    __table_args__ = (Index("idx_validation_rules_form", "form_id", "column_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    validation_type_id: Mapped[int] = mapped_column(
        ForeignKey("validation_types.id", ondelete="CASCADE"), nullable=False
    )
    column_id: Mapped[int] = mapped_column(
        ForeignKey("dynamic_columns.id", ondelete="CASCADE"), nullable=False
    )
    form_id: Mapped[int] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)

    validation_type: Mapped["ValidationType"] = relationship()
    column: Mapped["DynamicColumn"] = relationship()


# =============================================================================
# Submissions + payments
# =============================================================================

class SubmissionValue(Base):
    """One column's textual answer within a submission."""

    __tablename__ = "form_values"
    __table_args__ = (
        Index("idx_form_values_submission", "submission_id"),
        Index("idx_form_values_form_submitter", "form_id", "submitter_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    form_id: Mapped[int] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    column_id: Mapped[int] = mapped_column(
        ForeignKey("dynamic_columns.id", ondelete="CASCADE"), nullable=False
    )
    submitter_id: Mapped[int] = mapped_column(
        ForeignKey("submitters.id", ondelete="CASCADE"), nullable=False
    )
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    column: Mapped["DynamicColumn"] = relationship()
    submitter: Mapped["Submitter"] = relationship()


class Payment(Base):
    """Gateway transaction that finalized a paid submission."""

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("submission_id", name="uq_payments_submission"),
        UniqueConstraint("gateway_payment_id", name="uq_payments_gateway_payment"),
        Index("idx_payments_form", "form_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    form_id: Mapped[int] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    submitter_id: Mapped[int] = mapped_column(
        ForeignKey("submitters.id", ondelete="CASCADE"), nullable=False
    )
    gateway_order_id: Mapped[str] = mapped_column(String(100), nullable=False)
    gateway_payment_id: Mapped[str] = mapped_column(String(100), nullable=False)
    gateway_signature: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.CAPTURED.value, nullable=False
    )
    paid_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)

    submitter: Mapped["Submitter"] = relationship()

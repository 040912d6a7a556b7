"""Schemas for submissions, submission reads and payments."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class SubmissionCreatedResponse(BaseModel):
    message: str
    submission_id: UUID


class MessageResponse(BaseModel):
    message: str


class SubmissionCheckRead(BaseModel):
    has_submission: bool
    submission_id: UUID | None = None


class SubmittedColumnRead(BaseModel):
    col_id: int
    column_name: str
    data_type: str
    sequence_no: int


class SubmissionRead(BaseModel):
    submission_id: UUID
    identifier: str | None = None
    values: dict[int, str]


class FormValuesRead(BaseModel):
    form_id: int
    form_name: str
    columns: list[SubmittedColumnRead]
    submissions: list[SubmissionRead]


class SubmitterFormValuesRead(BaseModel):
    form_id: int
    form_name: str
    identifier: str
    submissions: list[SubmissionRead]


class SubmissionSummaryRead(BaseModel):
    submission_id: UUID
    form_id: int
    identifier: str
    gateway_payment_id: str | None = None
    amount: Decimal | None = None
    status: str | None = None
    paid_at: datetime | None = None


# =============================================================================
# Payments
# =============================================================================

class OrderCreateRequest(BaseModel):
    form_id: int


class OrderRead(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: str | None = None
    status: str | None = None
    form_id: int


class OrderCreatedResponse(BaseModel):
    success: bool = True
    order: OrderRead


class PaymentVerifiedResponse(BaseModel):
    success: bool = True
    message: str
    submission_id: UUID

"""Tests for payment-gated submissions and gateway orders."""
import json
from decimal import Decimal

import httpx
import pytest

from formbuilder.core.config import settings
from formbuilder.core.exceptions import (
    DuplicatePayment,
    GatewayError,
    InvalidSignature,
    SubmitterNotFound,
    ValidationError,
)
from formbuilder.db.enums import PaymentStatus
from formbuilder.db.models import Payment, SubmissionValue
from formbuilder.services import payment_service, submitter_service


@pytest.fixture
def registered(db):
    submitter, _ = submitter_service.register_submitter(db, "payer@example.com")
    return submitter


def _signed(order_id: str = "order_1", payment_id: str = "pay_1") -> dict:
    return {
        "order_id": order_id,
        "payment_id": payment_id,
        "signature": payment_service.compute_signature(order_id, payment_id),
    }


def test_signature_matches_hmac_of_order_and_payment():
    signature = payment_service.compute_signature("order_A", "pay_B", secret="s3cret")

    assert len(signature) == 64
    assert signature != payment_service.compute_signature("order_A", "pay_C", secret="s3cret")
    assert payment_service.verify_signature("order_A", "pay_B", "bad") is False
    assert payment_service.verify_signature(
        "order_A", "pay_B", payment_service.compute_signature("order_A", "pay_B")
    )


def test_paid_submission_records_values_and_payment(db, paid_form, registered):
    form, first, second = paid_form

    submission_id = payment_service.submit_paid_submission(
        db,
        form.id,
        registered.identifier,
        {first.id: "Priya", second.id: "Pune"},
        **_signed(),
    )

    values = db.query(SubmissionValue).filter_by(submission_id=submission_id).all()
    assert len(values) == 2
    payment = db.query(Payment).one()
    assert payment.submission_id == submission_id
    assert payment.amount == Decimal("500")
    assert payment.status == PaymentStatus.CAPTURED.value
    assert payment.currency == settings.PAYMENT_CURRENCY
    assert payment.gateway_payment_id == "pay_1"


def test_bad_signature_writes_nothing(db, paid_form, registered):
    form, first, _ = paid_form
    details = _signed()
    details["signature"] = "0" * 64

    with pytest.raises(InvalidSignature):
        payment_service.submit_paid_submission(
            db, form.id, registered.identifier, {first.id: "Priya"}, **details
        )

    assert db.query(SubmissionValue).count() == 0
    assert db.query(Payment).count() == 0


def test_unknown_submitter_is_rejected(db, paid_form):
    form, first, _ = paid_form

    with pytest.raises(SubmitterNotFound):
        payment_service.submit_paid_submission(
            db, form.id, "stranger@example.com", {first.id: "X"}, **_signed()
        )


def test_invalid_values_with_valid_payment_write_nothing(db, builder, registered):
    form = builder.form("Paid", fee=Decimal("100"))
    age = builder.column("Age", "number")
    builder.bind(form, age)

    with pytest.raises(ValidationError):
        payment_service.submit_paid_submission(
            db, form.id, registered.identifier, {age.id: "old"}, **_signed()
        )

    assert db.query(SubmissionValue).count() == 0
    assert db.query(Payment).count() == 0


def test_same_gateway_payment_cannot_be_reused(db, paid_form, registered):
    form, first, _ = paid_form
    payment_service.submit_paid_submission(
        db, form.id, registered.identifier, {first.id: "One"}, **_signed()
    )

    with pytest.raises(DuplicatePayment):
        payment_service.submit_paid_submission(
            db, form.id, registered.identifier, {first.id: "Two"}, **_signed()
        )

    assert db.query(Payment).count() == 1
    assert db.query(SubmissionValue).count() == 1


def test_paid_path_rejects_free_form(db, free_form, registered):
    form, name, _ = free_form

    with pytest.raises(ValidationError):
        payment_service.submit_paid_submission(
            db, form.id, registered.identifier, {name.id: "Free"}, **_signed()
        )

    assert db.query(SubmissionValue).count() == 0
    assert db.query(Payment).count() == 0


# =============================================================================
# Gateway orders
# =============================================================================

def _mock_gateway(monkeypatch, handler):
    def factory():
        return httpx.AsyncClient(
            base_url=settings.RAZORPAY_API_URL,
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(payment_service, "_http_client", factory)


async def test_create_order_sends_fee_in_minor_units(db, paid_form, monkeypatch):
    form, _, _ = paid_form
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "id": "order_XYZ",
                "amount": seen["body"]["amount"],
                "currency": "INR",
                "receipt": seen["body"]["receipt"],
                "status": "created",
            },
        )

    _mock_gateway(monkeypatch, handler)

    order = await payment_service.create_order(db, form.id)

    assert seen["path"].endswith("/orders")
    assert seen["body"]["amount"] == 50000
    assert seen["body"]["notes"] == {"form_id": str(form.id)}
    assert order["id"] == "order_XYZ"
    assert order["form_id"] == form.id


async def test_create_order_maps_gateway_failure(db, paid_form, monkeypatch):
    form, _, _ = paid_form
    _mock_gateway(monkeypatch, lambda request: httpx.Response(500, json={"error": "down"}))

    with pytest.raises(GatewayError):
        await payment_service.create_order(db, form.id)


async def test_create_order_rejects_free_form(db, free_form):
    form, _, _ = free_form

    with pytest.raises(ValidationError):
        await payment_service.create_order(db, form.id)

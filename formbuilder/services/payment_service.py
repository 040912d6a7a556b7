"""Payment-gated submissions and gateway order creation (Razorpay)."""

import hashlib
import hmac
import logging
import time
import uuid
from decimal import Decimal
from typing import Any, Mapping

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from formbuilder.core.config import settings
from formbuilder.core.exceptions import (
    DuplicatePayment,
    FormBuilderError,
    FormNotFound,
    GatewayError,
    InvalidSignature,
    PersistenceError,
    ValidationError,
)
from formbuilder.core.structured_logging import build_log_context
from formbuilder.db.enums import PaymentStatus
from formbuilder.db.models import Payment
from formbuilder.services import form_service, form_submission_service, submitter_service

logger = logging.getLogger(__name__)

HTTPX_TIMEOUT = httpx.Timeout(15.0, connect=5.0)


# =============================================================================
# Signatures
# =============================================================================

def compute_signature(order_id: str, payment_id: str, secret: str | None = None) -> str:
    """Hex HMAC-SHA256 of ``order_id|payment_id`` under the gateway key secret."""
    key = (secret if secret is not None else settings.RAZORPAY_KEY_SECRET).encode("utf-8")
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str) -> bool:
    if not order_id or not payment_id or not signature:
        return False
    expected = compute_signature(order_id, payment_id)
    return hmac.compare_digest(expected, signature.strip().lower())


# =============================================================================
# Gateway orders
# =============================================================================

def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.RAZORPAY_API_URL,
        auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
        timeout=HTTPX_TIMEOUT,
    )


async def create_order(db: Session, form_id: int) -> dict:
    """
    Create a gateway order for a form's fee.

    Raises:
        FormNotFound: Form missing, inactive or expired
        ValidationError: Form has no fee
        GatewayError: Transport failure or non-2xx gateway response
    """
    form = form_service.get_open_form(db, form_id)
    if not form:
        raise FormNotFound()
    if not form.requires_payment:
        raise ValidationError("Form does not require payment")

    payload = {
        "amount": to_minor_units(form.fee),
        "currency": settings.PAYMENT_CURRENCY,
        "receipt": f"receipt_order_{int(time.time() * 1000)}",
        "notes": {"form_id": str(form_id)},
    }
    log_context = build_log_context(form_id=form_id)
    try:
        async with _http_client() as client:
            response = await client.post("/orders", json=payload)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Gateway rejected order with %s", exc.response.status_code, extra=log_context
        )
        raise GatewayError() from exc
    except httpx.RequestError as exc:
        logger.warning("Gateway order request failed: %s", exc, extra=log_context)
        raise GatewayError() from exc

    order = response.json()
    logger.info("Gateway order created", extra=log_context)
    return {
        "id": order["id"],
        "amount": order.get("amount", payload["amount"]),
        "currency": order.get("currency", payload["currency"]),
        "receipt": order.get("receipt"),
        "status": order.get("status"),
        "form_id": form_id,
    }


# =============================================================================
# Payment-gated submission
# =============================================================================

def submit_paid_submission(
    db: Session,
    form_id: int,
    identifier: str,
    raw_values: Mapping[Any, Any] | None,
    order_id: str,
    payment_id: str,
    signature: str,
) -> uuid.UUID:
    """
    Verify a gateway payment and persist the submission plus its payment record.

    Runs as one transaction: on any failure nothing from this call is visible.
    The signature is checked before anything touches the store.

    Raises:
        SubmitterNotFound: Submitter never registered
        InvalidSignature: Signature does not match (nothing written)
        ValidationError: Values failed validation or form has no fee (nothing written)
        FormNotFound: Form missing, inactive or expired
        DuplicatePayment: Gateway payment already recorded
        PersistenceError: Store failure (rolled back)
    """
    log_context = build_log_context(form_id=form_id, submitter=identifier)
    try:
        submitter_service.require_submitter(db, identifier)

        if not verify_signature(order_id, payment_id, signature):
            logger.warning("Payment signature mismatch", extra=log_context)
            raise InvalidSignature()
        if db.query(Payment.id).filter(Payment.gateway_payment_id == payment_id).first():
            raise DuplicatePayment()

        form = form_service.get_open_form(db, form_id)
        if not form:
            raise FormNotFound()
        if not form.requires_payment:
            raise ValidationError("Form does not require payment")
        submission_id, submitter, _ = form_submission_service.stage_submission(
            db, form, identifier, raw_values
        )

        db.add(
            Payment(
                form_id=form_id,
                submission_id=submission_id,
                submitter_id=submitter.id,
                gateway_order_id=order_id,
                gateway_payment_id=payment_id,
                gateway_signature=signature,
                amount=form.fee,
                currency=settings.PAYMENT_CURRENCY,
                status=PaymentStatus.CAPTURED.value,
            )
        )
        db.flush()
        db.commit()
    except FormBuilderError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Duplicate payment rejected", extra=log_context)
        raise DuplicatePayment() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist paid submission", extra=log_context)
        raise PersistenceError() from exc

    logger.info(
        "Paid submission recorded",
        extra=build_log_context(
            form_id=form_id, submission_id=str(submission_id), submitter=identifier
        ),
    )
    return submission_id

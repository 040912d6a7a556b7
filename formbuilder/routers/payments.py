"""Payment endpoints: gateway orders and payment-gated submission."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_db, get_submitter_identifier
from formbuilder.core.rate_limit import PAYMENT_LIMIT, limiter
from formbuilder.routers.multipart import read_submission_payload
from formbuilder.schemas.submissions import (
    OrderCreatedResponse,
    OrderCreateRequest,
    OrderRead,
    PaymentVerifiedResponse,
)
from formbuilder.services import payment_service

router = APIRouter(prefix="/payments", tags=["payments"])

ORDER_ID_FIELD = "razorpay_order_id"
PAYMENT_ID_FIELD = "razorpay_payment_id"
SIGNATURE_FIELD = "razorpay_signature"


@router.post("/orders", response_model=OrderCreatedResponse)
@limiter.limit(PAYMENT_LIMIT)
async def create_order(
    request: Request,
    body: OrderCreateRequest,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    order = await payment_service.create_order(db, body.form_id)
    return OrderCreatedResponse(order=OrderRead(**order))


@router.post("/verify", response_model=PaymentVerifiedResponse)
@limiter.limit(PAYMENT_LIMIT)
async def verify_payment(
    request: Request,
    identifier: str = Depends(get_submitter_identifier),
    db: Session = Depends(get_db),
):
    payload = await read_submission_payload(request)
    order_id = payload.fields.get(ORDER_ID_FIELD, "")
    payment_id = payload.fields.get(PAYMENT_ID_FIELD, "")
    signature = payload.fields.get(SIGNATURE_FIELD, "")
    if not order_id or not payment_id or not signature:
        raise HTTPException(status_code=400, detail="Payment details are required")

    submission_id = payment_service.submit_paid_submission(
        db,
        form_id=payload.form_id,
        identifier=identifier,
        raw_values=payload.values,
        order_id=order_id,
        payment_id=payment_id,
        signature=signature,
    )
    return PaymentVerifiedResponse(
        message="Payment verified and form submitted successfully",
        submission_id=submission_id,
    )

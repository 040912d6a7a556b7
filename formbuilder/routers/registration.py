"""Submitter registration and one-time passcode endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from formbuilder.core.deps import get_db
from formbuilder.core.exceptions import FormNotFound
from formbuilder.core.rate_limit import OTP_LIMIT, limiter
from formbuilder.schemas.auth import (
    OtpRequest,
    OtpVerifyRequest,
    OtpVerifyResponse,
    SubmitterRegisterRequest,
    SubmitterRegisterResponse,
    SubmitterVerifyRequest,
)
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import form_service, submitter_service

router = APIRouter(prefix="/register", tags=["registration"])


@router.post("/insert", response_model=SubmitterRegisterResponse)
def register_submitter(body: SubmitterRegisterRequest, db: Session = Depends(get_db)):
    if not form_service.form_exists(db, body.form_id):
        raise FormNotFound()
    submitter, created = submitter_service.register_submitter(db, body.identifier)
    message = (
        "User registered provisionally. Please verify OTP."
        if created
        else "User already exists. Proceed with OTP verification."
    )
    return SubmitterRegisterResponse(
        message=message, identifier=submitter.identifier, is_existing_user=not created
    )


@router.post("/verify", response_model=MessageResponse)
def verify_submitter(body: SubmitterVerifyRequest, db: Session = Depends(get_db)):
    submitter_service.verify_submitter(db, body.identifier, body.external_uid)
    return MessageResponse(message="User verified successfully")


@router.post("/otp/send", response_model=MessageResponse)
@limiter.limit(OTP_LIMIT)
async def send_otp(request: Request, body: OtpRequest, db: Session = Depends(get_db)):
    await submitter_service.issue_otp(db, body.identifier)
    return MessageResponse(message="OTP sent successfully")


@router.post("/otp/verify", response_model=OtpVerifyResponse)
@limiter.limit(OTP_LIMIT)
def verify_otp(request: Request, body: OtpVerifyRequest, db: Session = Depends(get_db)):
    token = submitter_service.verify_otp(db, body.identifier, body.otp)
    return OtpVerifyResponse(
        message="OTP verified successfully.",
        identifier=submitter_service.normalize_identifier(body.identifier),
        token=token,
    )

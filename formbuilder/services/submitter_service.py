"""Submitter identities: first-contact registration and passcode verification."""

import hmac
import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from formbuilder.core.config import settings
from formbuilder.core.exceptions import SubmitterNotFound, ValidationError
from formbuilder.core.otp_store import OtpStore, get_otp_store
from formbuilder.core.security import create_submitter_token
from formbuilder.core.structured_logging import build_log_context
from formbuilder.db.models import Submitter
from formbuilder.services import messaging_service

logger = logging.getLogger(__name__)


def normalize_identifier(identifier: str) -> str:
    return identifier.strip()


def get_submitter(db: Session, identifier: str) -> Submitter | None:
    return (
        db.query(Submitter)
        .filter(Submitter.identifier == normalize_identifier(identifier))
        .first()
    )


def require_submitter(db: Session, identifier: str) -> Submitter:
    submitter = get_submitter(db, identifier)
    if not submitter or not submitter.is_active:
        raise SubmitterNotFound()
    return submitter


def get_or_create_submitter(db: Session, identifier: str) -> tuple[Submitter, bool]:
    """
    Resolve a submitter, adding a new unverified row on first contact.

    Only flushes; the caller owns the transaction.
    """
    cleaned = normalize_identifier(identifier)
    if not cleaned:
        raise ValidationError("Identifier is required")
    submitter = get_submitter(db, cleaned)
    if submitter:
        return submitter, False
    submitter = Submitter(identifier=cleaned, is_verified=False)
    db.add(submitter)
    db.flush()
    return submitter, True


def register_submitter(db: Session, identifier: str) -> tuple[Submitter, bool]:
    submitter, created = get_or_create_submitter(db, identifier)
    db.commit()
    db.refresh(submitter)
    if created:
        logger.info("Submitter registered", extra=build_log_context(submitter=identifier))
    return submitter, created


def verify_submitter(db: Session, identifier: str, external_uid: str) -> Submitter:
    """Mark a submitter verified after an out-of-band identity-provider check."""
    submitter = get_submitter(db, identifier)
    if not submitter:
        raise SubmitterNotFound()
    submitter.is_verified = True
    submitter.external_uid = external_uid
    submitter.verified_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(submitter)
    return submitter


# =============================================================================
# One-time passcodes
# =============================================================================

def generate_otp(length: int | None = None) -> str:
    digits = length or settings.OTP_LENGTH
    return "".join(secrets.choice("0123456789") for _ in range(digits))


async def issue_otp(
    db: Session,
    identifier: str,
    store: OtpStore | None = None,
) -> Submitter:
    """
    Ensure the submitter exists, cache a fresh passcode and send it.

    The submitter row and cached code survive a delivery failure; the
    ``MessagingError`` propagates to the caller.
    """
    store = store or get_otp_store()
    submitter, _ = register_submitter(db, identifier)
    code = generate_otp()
    store.put(submitter.identifier, code, settings.OTP_TTL_SECONDS)
    await messaging_service.send_message(
        submitter.identifier,
        f"Your verification code is {code}. It expires in "
        f"{settings.OTP_TTL_SECONDS // 60} minutes.",
    )
    return submitter


def verify_otp(
    db: Session,
    identifier: str,
    code: str,
    store: OtpStore | None = None,
) -> str:
    """
    Consume a cached passcode and return a submitter token.

    The entry is deleted on first use whether or not it matches.
    """
    store = store or get_otp_store()
    key = normalize_identifier(identifier)
    expected = store.get(key)
    store.delete(key)
    if expected is None or not hmac.compare_digest(expected, code.strip()):
        raise ValidationError("Invalid or expired OTP")

    submitter = get_submitter(db, key)
    if not submitter:
        raise SubmitterNotFound()
    submitter.is_verified = True
    submitter.verified_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Submitter verified via OTP", extra=build_log_context(submitter=key))
    return create_submitter_token(submitter.identifier)

"""Outbound messaging for submitter passcodes (WhatsApp gateway or Resend email)."""

from __future__ import annotations

import logging
import re

import httpx

from formbuilder.core.config import settings
from formbuilder.core.exceptions import MessagingError
from formbuilder.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
HTTPX_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
OTP_EMAIL_SUBJECT = "Your verification code"

_PHONE_RE = re.compile(r"^\+?[0-9][0-9\s-]{6,}$")


def is_phone_identifier(identifier: str) -> bool:
    return "@" not in identifier and bool(_PHONE_RE.match(identifier.strip()))


def _normalize_phone(identifier: str) -> str:
    return re.sub(r"[^0-9]", "", identifier)


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=HTTPX_TIMEOUT)


async def _send_whatsapp(number: str, body: str) -> None:
    if not settings.WHATSAPP_API_URL:
        raise MessagingError("WhatsApp delivery is not configured")
    payload = {
        "number": number,
        "type": "text",
        "message": body,
        "instance_id": settings.WHATSAPP_INSTANCE_ID,
        "access_token": settings.WHATSAPP_ACCESS_TOKEN,
    }
    async with _http_client() as client:
        response = await client.post(settings.WHATSAPP_API_URL, json=payload)
        response.raise_for_status()


async def _send_email(to_address: str, body: str) -> None:
    if not settings.RESEND_API_KEY:
        raise MessagingError("Email delivery is not configured")
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_address],
        "subject": OTP_EMAIL_SUBJECT,
        "text": body,
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    async with _http_client() as client:
        response = await client.post(RESEND_SEND_URL, json=payload, headers=headers)
        response.raise_for_status()


async def send_message(identifier: str, body: str) -> None:
    """
    Deliver ``body`` to a submitter, best effort.

    Phone numbers go through the WhatsApp gateway, email addresses through Resend.

    Raises:
        MessagingError: If delivery is unconfigured or the provider rejects it
    """
    log_context = build_log_context(submitter=identifier)
    try:
        if is_phone_identifier(identifier):
            await _send_whatsapp(_normalize_phone(identifier), body)
        else:
            await _send_email(identifier.strip(), body)
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Message provider returned %s", exc.response.status_code, extra=log_context
        )
        raise MessagingError() from exc
    except httpx.RequestError as exc:
        logger.warning("Message provider request failed: %s", exc, extra=log_context)
        raise MessagingError() from exc
    logger.info("Message delivered", extra=log_context)

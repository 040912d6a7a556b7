"""Tests for submitter registration, OTP issuance and the passcode store."""
import httpx
import pytest

from formbuilder.core.exceptions import MessagingError, SubmitterNotFound, ValidationError
from formbuilder.core.otp_store import InMemoryOtpStore
from formbuilder.core.security import SUBMITTER_TOKEN_KIND, decode_token
from formbuilder.core.config import settings
from formbuilder.services import messaging_service, submitter_service


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_otp_store_expires_entries():
    clock = FakeClock()
    store = InMemoryOtpStore(clock=clock)
    store.put("a@b.co", "123456", ttl=60)

    clock.now += 59
    assert store.get("a@b.co") == "123456"

    clock.now += 1
    assert store.get("a@b.co") is None


def test_register_submitter_reports_existing(db):
    _, created = submitter_service.register_submitter(db, " a@b.co ")
    submitter, created_again = submitter_service.register_submitter(db, "a@b.co")

    assert created is True
    assert created_again is False
    assert submitter.identifier == "a@b.co"


def test_verify_submitter_records_external_uid(db):
    submitter_service.register_submitter(db, "a@b.co")

    submitter = submitter_service.verify_submitter(db, "a@b.co", "uid-123")

    assert submitter.is_verified is True
    assert submitter.external_uid == "uid-123"
    with pytest.raises(SubmitterNotFound):
        submitter_service.verify_submitter(db, "nobody@b.co", "uid")


async def test_issue_and_verify_otp(db, monkeypatch):
    sent = []

    async def fake_send(identifier, body):
        sent.append((identifier, body))

    monkeypatch.setattr(messaging_service, "send_message", fake_send)
    store = InMemoryOtpStore()

    await submitter_service.issue_otp(db, "a@b.co", store=store)

    code = store.get("a@b.co")
    assert code is not None and len(code) == settings.OTP_LENGTH
    assert sent[0][0] == "a@b.co"
    assert code in sent[0][1]

    token = submitter_service.verify_otp(db, "a@b.co", code, store=store)

    payload = decode_token(token)
    assert payload["sub"] == "a@b.co"
    assert payload["kind"] == SUBMITTER_TOKEN_KIND
    assert submitter_service.get_submitter(db, "a@b.co").is_verified is True


def test_otp_is_single_use(db):
    store = InMemoryOtpStore()
    submitter_service.register_submitter(db, "a@b.co")
    store.put("a@b.co", "111111", ttl=60)

    with pytest.raises(ValidationError):
        submitter_service.verify_otp(db, "a@b.co", "222222", store=store)
    with pytest.raises(ValidationError):
        submitter_service.verify_otp(db, "a@b.co", "111111", store=store)


async def test_issue_otp_surfaces_delivery_failure(db, monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "")
    store = InMemoryOtpStore()

    with pytest.raises(MessagingError):
        await submitter_service.issue_otp(db, "a@b.co", store=store)

    assert submitter_service.get_submitter(db, "a@b.co") is not None


# =============================================================================
# Messaging
# =============================================================================

async def test_phone_identifier_goes_to_whatsapp(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(200, json={"status": "success"})

    monkeypatch.setattr(settings, "WHATSAPP_API_URL", "https://wa.example.com/send")
    monkeypatch.setattr(
        messaging_service,
        "_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    await messaging_service.send_message("+91 98765-43210", "hello")

    assert seen["url"] == "https://wa.example.com/send"
    assert b'"number":"919876543210"' in seen["body"].replace(b" ", b"")


async def test_provider_rejection_raises_messaging_error(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(
        messaging_service,
        "_http_client",
        lambda: httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(422))
        ),
    )

    with pytest.raises(MessagingError):
        await messaging_service.send_message("a@b.co", "hello")

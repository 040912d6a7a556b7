"""Structured logging helpers (PII-safe)."""

import hashlib
from typing import Any


def redact_identifier(identifier: str | None) -> str | None:
    """Stable short digest of a submitter email/phone for log correlation."""
    if not identifier:
        return None
    normalized = identifier.strip().lower()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def build_log_context(
    *,
    form_id: int | None = None,
    submission_id: str | None = None,
    submitter: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if form_id is not None:
        context["form_id"] = form_id
    if submission_id:
        context["submission_id"] = str(submission_id)
    if submitter:
        context["submitter_ref"] = redact_identifier(submitter)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context

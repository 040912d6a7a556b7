"""Security utilities for bearer tokens and password hashing."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from formbuilder.core.config import settings


ADMIN_TOKEN_KIND = "admin"
SUBMITTER_TOKEN_KIND = "submitter"


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =============================================================================
# Bearer tokens
# =============================================================================

def create_access_token(user_id: int, name: str, role: int) -> str:
    """
    Create signed admin bearer JWT.

    Token carries the admin id as ``sub`` plus display name and role.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "name": name,
        "role": role,
        "kind": ADMIN_TOKEN_KIND,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def create_submitter_token(identifier: str) -> str:
    """Short-lived token handed to a submitter after OTP verification."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identifier,
        "kind": SUBMITTER_TOKEN_KIND,
        "iat": now,
        "exp": now + timedelta(hours=settings.SUBMITTER_TOKEN_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_token(token: str) -> dict:
    """
    Decode and verify a bearer JWT.

    Raises:
        jwt.InvalidTokenError: If token is invalid or expired
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])

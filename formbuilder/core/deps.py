"""FastAPI dependencies for database access and caller identity."""

from typing import Generator

import jwt
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from formbuilder.core.security import ADMIN_TOKEN_KIND, decode_token
from formbuilder.db.models import AdminUser
from formbuilder.db.session import SessionLocal


SUBMITTER_HEADER = "userid"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_admin(request: Request, db: Session = Depends(get_db)):
    """
    Resolve the administrator behind an ``Authorization: Bearer`` token.

    Raises:
        HTTPException 401: Missing/invalid token, unknown or disabled admin
    """
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if payload.get("kind") != ADMIN_TOKEN_KIND:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        admin_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    admin = db.query(AdminUser).filter(AdminUser.id == admin_id).first()
    if not admin:
        raise HTTPException(status_code=401, detail="User not found")
    if not admin.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")
    return admin


def get_submitter_identifier(
    userid: str | None = Header(default=None, alias=SUBMITTER_HEADER),
) -> str:
    """Submitter email/phone as resolved by the upstream identity layer."""
    identifier = (userid or "").strip()
    if not identifier:
        raise HTTPException(status_code=400, detail="userid header is required")
    return identifier

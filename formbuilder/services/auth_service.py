"""Administrator accounts: registration and credential checks."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from formbuilder.core.exceptions import AuthenticationError, ConflictError
from formbuilder.core.security import hash_password, verify_password
from formbuilder.db.models import AdminUser


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_admin_by_email(db: Session, email: str) -> AdminUser | None:
    return db.query(AdminUser).filter(AdminUser.email == _normalize_email(email)).first()


def register_admin(db: Session, name: str, email: str, password: str) -> AdminUser:
    """Create an administrator account; email must be unused."""
    if get_admin_by_email(db, email):
        raise ConflictError("User already exists")

    admin = AdminUser(
        name=name.strip(),
        email=_normalize_email(email),
        password_hash=hash_password(password),
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("User already exists") from exc
    db.refresh(admin)
    return admin


def authenticate_admin(db: Session, email: str, password: str) -> AdminUser:
    admin = get_admin_by_email(db, email)
    if not admin or not admin.is_active:
        raise AuthenticationError()
    if not verify_password(password, admin.password_hash):
        raise AuthenticationError()
    return admin

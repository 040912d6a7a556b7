"""Form definitions: CRUD, lazy expiry and owner dashboard counts."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session, joinedload

from formbuilder.core.exceptions import FormNotFound
from formbuilder.db.models import DynamicColumn, Form, SubmissionValue

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by backends without tz support."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(form: Form, now: datetime | None = None) -> bool:
    end_date = as_utc(form.end_date)
    return end_date is not None and end_date <= (now or _now())


def is_open(form: Form, now: datetime | None = None) -> bool:
    """Active and not past its end date."""
    return form.is_active and not is_expired(form, now)


def open_form_clause(now: datetime | None = None):
    """SQL filter matching forms that are active and not yet expired."""
    return (
        Form.is_active.is_(True),
        or_(Form.end_date.is_(None), Form.end_date > (now or _now())),
    )


# =============================================================================
# Reads
# =============================================================================

def get_form(db: Session, owner_id: int, form_id: int) -> Form | None:
    return (
        db.query(Form)
        .filter(Form.id == form_id, Form.owner_id == owner_id)
        .first()
    )


def require_form(db: Session, owner_id: int, form_id: int) -> Form:
    form = get_form(db, owner_id, form_id)
    if not form:
        raise FormNotFound()
    return form


def get_open_form(db: Session, form_id: int) -> Form | None:
    """Public lookup: only active, unexpired forms."""
    return db.query(Form).filter(Form.id == form_id, *open_form_clause()).first()


def form_exists(db: Session, form_id: int) -> bool:
    return get_open_form(db, form_id) is not None


def get_form_name(db: Session, form_id: int) -> str:
    form = get_open_form(db, form_id)
    if not form:
        raise FormNotFound()
    return form.name


def expire_forms(db: Session, owner_id: int | None = None, now: datetime | None = None) -> int:
    """Deactivate every active form whose end date has passed. Returns rows changed."""
    stmt = (
        update(Form)
        .where(
            Form.is_active.is_(True),
            Form.end_date.is_not(None),
            Form.end_date <= (now or _now()),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    if owner_id is not None:
        stmt = stmt.where(Form.owner_id == owner_id)
    result = db.execute(stmt)
    db.commit()
    if result.rowcount:
        logger.info("Expired %s form(s)", result.rowcount, extra={"owner_id": owner_id})
    return result.rowcount


def list_forms_for_owner(db: Session, owner_id: int) -> list[Form]:
    """
    List an owner's forms, newest first.

    Deactivates forms whose end date has passed before reading, so an expired
    form is never reported as active.
    """
    expire_forms(db, owner_id=owner_id)
    return (
        db.query(Form)
        .options(joinedload(Form.owner))
        .filter(Form.owner_id == owner_id)
        .order_by(Form.created_at.desc(), Form.id.desc())
        .all()
    )


def dashboard_counts(db: Session, owner_id: int) -> dict[str, int]:
    form_count = (
        db.query(func.count(Form.id))
        .filter(Form.owner_id == owner_id, Form.is_active.is_(True))
        .scalar()
    )
    column_count = (
        db.query(func.count(DynamicColumn.id))
        .filter(DynamicColumn.owner_id == owner_id, DynamicColumn.is_active.is_(True))
        .scalar()
    )
    submission_count = (
        db.query(func.count(func.distinct(SubmissionValue.submission_id)))
        .join(Form, Form.id == SubmissionValue.form_id)
        .filter(Form.owner_id == owner_id, SubmissionValue.is_active.is_(True))
        .scalar()
    )
    submitter_count = (
        db.query(func.count(func.distinct(SubmissionValue.submitter_id)))
        .join(Form, Form.id == SubmissionValue.form_id)
        .filter(Form.owner_id == owner_id, SubmissionValue.is_active.is_(True))
        .scalar()
    )
    return {
        "form_count": form_count or 0,
        "column_count": column_count or 0,
        "submission_count": submission_count or 0,
        "submitter_count": submitter_count or 0,
    }


# =============================================================================
# Writes
# =============================================================================

def create_form(
    db: Session,
    owner_id: int,
    name: str,
    created_at: datetime | None = None,
    end_date: datetime | None = None,
    fee: Decimal | None = None,
    banner_image: str | None = None,
) -> Form:
    form = Form(
        name=name.strip(),
        owner_id=owner_id,
        end_date=as_utc(end_date),
        fee=fee,
        banner_image=banner_image,
        is_active=True,
    )
    if created_at is not None:
        form.created_at = as_utc(created_at)
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def update_form(
    db: Session,
    form: Form,
    name: str,
    created_at: datetime | None = None,
    end_date: datetime | None = None,
    fee: Decimal | None = None,
    banner_image: str | None = None,
) -> Form:
    form.name = name.strip()
    if created_at is not None:
        form.created_at = as_utc(created_at)
    form.end_date = as_utc(end_date)
    form.fee = fee
    if banner_image is not None:
        form.banner_image = banner_image
    db.commit()
    db.refresh(form)
    return form


def soft_delete_form(db: Session, form: Form) -> Form:
    form.is_active = False
    db.commit()
    db.refresh(form)
    return form

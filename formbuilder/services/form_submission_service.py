"""Submission writer and submission reads.

Creates and updates submissions against a form's assembled schema. All value
rows of one create/update land in a single transaction; validation runs before
anything is written, uploads happen before values referencing them are
persisted, and stored uploads are removed again if the transaction rolls back.
"""

import logging
import uuid
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from formbuilder.core.exceptions import (
    FormBuilderError,
    FormNotFound,
    PaymentRequired,
    PersistenceError,
    SubmissionNotFound,
    SubmitterNotFound,
    ValidationError,
)
from formbuilder.core.structured_logging import build_log_context
from formbuilder.db.models import (
    DynamicColumn,
    Form,
    FormColumnBinding,
    Payment,
    SubmissionValue,
    Submitter,
)
from formbuilder.services import (
    form_schema_service,
    form_service,
    storage_service,
    submitter_service,
)
from formbuilder.services.submission_validator import ValidatedSubmission, validate_submission

logger = logging.getLogger(__name__)

SUBMISSION_UPLOAD_FOLDER = "form_submissions"


# =============================================================================
# Write helpers (no commit)
# =============================================================================

def _store_uploads(db: Session, form_id: int, validated: ValidatedSubmission) -> dict[int, str]:
    """Store file payloads and return column id -> stable reference."""
    references: dict[int, str] = {}
    for col_id, asset in validated.files.items():
        reference = storage_service.store_asset(
            asset.data,
            asset.filename,
            asset.content_type,
            folder=f"{SUBMISSION_UPLOAD_FOLDER}/{form_id}",
        )
        storage_service.register_cleanup_on_rollback(db, reference)
        references[col_id] = reference
    return references


def stage_submission(
    db: Session,
    form: Form,
    identifier: str,
    raw_values: Mapping[Any, Any] | None,
) -> tuple[uuid.UUID, Submitter, int]:
    """
    Validate and add a new submission's rows to the session without committing.

    Returns (submission_id, submitter, row_count). Validation happens before the
    submitter is resolved or any file is stored.
    """
    schema = form_schema_service.assemble_schema(db, form.id)
    validated = validate_submission(schema, raw_values)
    if not validated.column_ids:
        raise ValidationError("No values submitted for this form")

    submitter, _ = submitter_service.get_or_create_submitter(db, identifier)
    values = dict(validated.values)
    values.update(_store_uploads(db, form.id, validated))

    submission_id = uuid.uuid4()
    written: set[int] = set()
    for descriptor in schema:
        if descriptor.col_id not in values or descriptor.col_id in written:
            continue
        written.add(descriptor.col_id)
        db.add(
            SubmissionValue(
                submission_id=submission_id,
                form_id=form.id,
                column_id=descriptor.col_id,
                submitter_id=submitter.id,
                value=values[descriptor.col_id],
                is_active=True,
            )
        )
    db.flush()
    return submission_id, submitter, len(values)


def _commit_or_raise(db: Session, log_context: dict) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist submission", extra=log_context)
        raise PersistenceError() from exc


# =============================================================================
# Create / update
# =============================================================================

def create_submission(
    db: Session,
    form_id: int,
    identifier: str,
    raw_values: Mapping[Any, Any] | None,
) -> uuid.UUID:
    """
    Persist a new submission for a free form and return its identifier.

    Raises:
        FormNotFound: Form missing, inactive or expired
        PaymentRequired: Form carries a fee; use the payment flow
        ValidationError: Any column failed validation (nothing written)
        UploadFailed: A file could not be stored (nothing written)
        PersistenceError: Store failure (rolled back)
    """
    log_context = build_log_context(form_id=form_id, submitter=identifier)
    try:
        form = form_service.get_open_form(db, form_id)
        if not form:
            raise FormNotFound()
        if form.requires_payment:
            raise PaymentRequired()
        submission_id, _, row_count = stage_submission(db, form, identifier, raw_values)
    except FormBuilderError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to stage submission", extra=log_context)
        raise PersistenceError() from exc

    _commit_or_raise(db, log_context)
    logger.info(
        "Submission created with %s value(s)",
        row_count,
        extra=build_log_context(
            form_id=form_id, submission_id=str(submission_id), submitter=identifier
        ),
    )
    return submission_id


def update_submission(
    db: Session,
    submission_id: uuid.UUID,
    form_id: int,
    identifier: str,
    raw_values: Mapping[Any, Any] | None,
) -> int:
    """
    Overwrite values of an existing submission in place. Returns rows updated.

    Only rows the submission already has are touched; columns it never answered
    are ignored rather than added.

    Raises:
        SubmitterNotFound: Unknown submitter
        FormNotFound: Form missing, inactive or expired
        SubmissionNotFound: No active rows for (form, submission, submitter)
        ValidationError: A provided column failed validation (nothing written)
    """
    log_context = build_log_context(
        form_id=form_id, submission_id=str(submission_id), submitter=identifier
    )
    try:
        submitter = submitter_service.get_submitter(db, identifier)
        if not submitter:
            raise SubmitterNotFound()
        form = form_service.get_open_form(db, form_id)
        if not form:
            raise FormNotFound()

        rows = (
            db.query(SubmissionValue)
            .filter(
                SubmissionValue.form_id == form_id,
                SubmissionValue.submission_id == submission_id,
                SubmissionValue.submitter_id == submitter.id,
                SubmissionValue.is_active.is_(True),
            )
            .all()
        )
        if not rows:
            raise SubmissionNotFound()
        rows_by_column = {row.column_id: row for row in rows}

        schema = [
            descriptor
            for descriptor in form_schema_service.assemble_schema(db, form_id)
            if descriptor.col_id in rows_by_column
        ]
        validated = validate_submission(
            schema,
            raw_values,
            partial=True,
            existing={col_id: row.value for col_id, row in rows_by_column.items()},
        )

        values = dict(validated.values)
        values.update(_store_uploads(db, form_id, validated))
        for col_id, value in values.items():
            rows_by_column[col_id].value = value
        db.flush()
    except FormBuilderError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to stage submission update", extra=log_context)
        raise PersistenceError() from exc

    _commit_or_raise(db, log_context)
    logger.info("Submission updated (%s value(s))", len(values), extra=log_context)
    return len(values)


def check_existing_submission(
    db: Session, form_id: int, identifier: str
) -> tuple[bool, uuid.UUID | None]:
    """Whether the submitter already has an active submission for the form."""
    submitter = submitter_service.get_submitter(db, identifier)
    if not submitter:
        return False, None
    row = (
        db.query(SubmissionValue.submission_id)
        .filter(
            SubmissionValue.form_id == form_id,
            SubmissionValue.submitter_id == submitter.id,
            SubmissionValue.is_active.is_(True),
        )
        .order_by(SubmissionValue.created_at.desc(), SubmissionValue.id.desc())
        .first()
    )
    if not row:
        return False, None
    return True, row[0]


def soft_delete_submission(
    db: Session, submission_id: uuid.UUID, form_id: int, identifier: str
) -> int:
    submitter = submitter_service.require_submitter(db, identifier)
    rows = (
        db.query(SubmissionValue)
        .filter(
            SubmissionValue.submission_id == submission_id,
            SubmissionValue.form_id == form_id,
            SubmissionValue.submitter_id == submitter.id,
            SubmissionValue.is_active.is_(True),
        )
        .all()
    )
    if not rows:
        raise SubmissionNotFound()
    for row in rows:
        row.is_active = False
    db.commit()
    return len(rows)


# =============================================================================
# Reads
# =============================================================================

def _group_by_submission(rows: list[SubmissionValue], include_identifier: bool) -> list[dict]:
    grouped: dict[uuid.UUID, dict] = {}
    for row in rows:
        entry = grouped.setdefault(
            row.submission_id,
            {
                "submission_id": row.submission_id,
                "identifier": row.submitter.identifier if include_identifier else None,
                "values": {},
            },
        )
        entry["values"][row.column_id] = row.value
    return list(grouped.values())


def _bound_columns(db: Session, form_id: int) -> list[dict]:
    rows = (
        db.query(FormColumnBinding, DynamicColumn)
        .join(DynamicColumn, DynamicColumn.id == FormColumnBinding.column_id)
        .filter(FormColumnBinding.form_id == form_id, FormColumnBinding.is_active.is_(True))
        .order_by(
            FormColumnBinding.form_no, FormColumnBinding.sequence_no, FormColumnBinding.id
        )
        .all()
    )
    return [
        {
            "col_id": column.id,
            "column_name": column.name,
            "data_type": column.data_type,
            "sequence_no": binding.sequence_no,
        }
        for binding, column in rows
    ]


def _values_query(db: Session, form_id: int):
    """Active values whose column is still actively bound into the form."""
    bound_column_ids = select(FormColumnBinding.column_id).where(
        FormColumnBinding.form_id == form_id,
        FormColumnBinding.is_active.is_(True),
    )
    return (
        db.query(SubmissionValue)
        .options(joinedload(SubmissionValue.submitter))
        .filter(
            SubmissionValue.form_id == form_id,
            SubmissionValue.is_active.is_(True),
            SubmissionValue.column_id.in_(bound_column_ids),
        )
        .order_by(SubmissionValue.created_at, SubmissionValue.id)
    )


def list_submitter_values(db: Session, form_id: int, identifier: str) -> dict:
    form = form_service.get_open_form(db, form_id)
    if not form:
        raise FormNotFound()
    submitter = submitter_service.require_submitter(db, identifier)
    rows = _values_query(db, form_id).filter(SubmissionValue.submitter_id == submitter.id).all()
    return {
        "form_id": form.id,
        "form_name": form.name,
        "identifier": submitter.identifier,
        "submissions": _group_by_submission(rows, include_identifier=False),
    }


def list_form_values(db: Session, owner_id: int, form_id: int) -> dict:
    """Every submitter's active answers for one of the owner's forms."""
    form = form_service.require_form(db, owner_id, form_id)
    rows = _values_query(db, form_id).all()
    return {
        "form_id": form.id,
        "form_name": form.name,
        "columns": _bound_columns(db, form_id),
        "submissions": _group_by_submission(rows, include_identifier=True),
    }


def list_values_by_identifier(db: Session, owner_id: int, identifier: str) -> list[dict]:
    """A submitter's active answers across the owner's forms, grouped per form."""
    submitter = submitter_service.require_submitter(db, identifier)
    rows = (
        db.query(SubmissionValue, Form)
        .join(Form, Form.id == SubmissionValue.form_id)
        .filter(
            SubmissionValue.submitter_id == submitter.id,
            SubmissionValue.is_active.is_(True),
            Form.owner_id == owner_id,
        )
        .order_by(Form.id, SubmissionValue.created_at, SubmissionValue.id)
        .all()
    )
    forms: dict[int, dict] = {}
    values_by_form: dict[int, list[SubmissionValue]] = {}
    for value, form in rows:
        forms.setdefault(
            form.id,
            {"form_id": form.id, "form_name": form.name, "identifier": submitter.identifier},
        )
        values_by_form.setdefault(form.id, []).append(value)
    return [
        {**forms[fid], "submissions": _group_by_submission(values, include_identifier=False)}
        for fid, values in values_by_form.items()
    ]


def list_submission_summaries(db: Session, owner_id: int) -> list[dict]:
    """One line per submission on the owner's forms, with its payment if any."""
    rows = (
        db.query(SubmissionValue.submission_id, SubmissionValue.form_id, Submitter.identifier)
        .join(Submitter, Submitter.id == SubmissionValue.submitter_id)
        .join(Form, Form.id == SubmissionValue.form_id)
        .filter(Form.owner_id == owner_id, SubmissionValue.is_active.is_(True))
        .distinct()
        .all()
    )
    if not rows:
        return []

    payments = {
        payment.submission_id: payment
        for payment in db.query(Payment)
        .filter(
            Payment.submission_id.in_([row.submission_id for row in rows]),
            Payment.is_active.is_(True),
        )
        .all()
    }
    summaries = []
    for submission_id, form_id, identifier in rows:
        payment = payments.get(submission_id)
        summaries.append(
            {
                "submission_id": submission_id,
                "form_id": form_id,
                "identifier": identifier,
                "gateway_payment_id": payment.gateway_payment_id if payment else None,
                "amount": payment.amount if payment else None,
                "status": payment.status if payment else None,
                "paid_at": form_service.as_utc(payment.paid_at) if payment else None,
            }
        )
    summaries.sort(key=lambda item: (item["form_id"], str(item["submission_id"])))
    return summaries

"""Tests for the submission writer and submission reads."""
import os
import uuid

import pytest

from formbuilder.core.config import settings
from formbuilder.core.exceptions import (
    FileValidationError,
    FormNotFound,
    MissingRequiredField,
    PaymentRequired,
    SubmissionNotFound,
    SubmitterNotFound,
    UploadFailed,
    ValidationError,
)
from formbuilder.db.enums import ValidationKind
from formbuilder.db.models import SubmissionValue, Submitter
from formbuilder.services import form_service, form_submission_service, storage_service
from formbuilder.services.submission_validator import UploadedAsset


def _rows(db, submission_id=None):
    query = db.query(SubmissionValue)
    if submission_id is not None:
        query = query.filter(SubmissionValue.submission_id == submission_id)
    return query.order_by(SubmissionValue.column_id).all()


def test_create_submission_writes_one_row_per_value(db, free_form):
    form, name, email = free_form

    submission_id = form_submission_service.create_submission(
        db, form.id, "alice@example.com", {str(name.id): "Alice", str(email.id): "alice@x.io"}
    )

    rows = _rows(db, submission_id)
    assert [(r.column_id, r.value) for r in rows] == [(name.id, "Alice"), (email.id, "alice@x.io")]
    assert {r.submitter_id for r in rows} == {
        db.query(Submitter).filter_by(identifier="alice@example.com").one().id
    }
    assert all(r.is_active for r in rows)


def test_create_submission_registers_submitter_on_first_contact(db, free_form):
    form, name, _ = free_form

    form_submission_service.create_submission(db, form.id, "+919999999999", {name.id: "Bo"})

    submitter = db.query(Submitter).filter_by(identifier="+919999999999").one()
    assert submitter.is_verified is False


def test_missing_required_value_writes_nothing(db, free_form):
    form, _, email = free_form

    with pytest.raises(MissingRequiredField):
        form_submission_service.create_submission(
            db, form.id, "alice@example.com", {email.id: "alice@x.io"}
        )

    assert _rows(db) == []
    assert db.query(Submitter).count() == 0


def test_invalid_later_value_writes_nothing(db, free_form):
    form, name, email = free_form

    with pytest.raises(ValidationError):
        form_submission_service.create_submission(
            db, form.id, "alice@example.com", {name.id: "Alice", email.id: "nope"}
        )

    assert _rows(db) == []


def test_submission_with_no_schema_values_is_rejected(db, builder):
    form = builder.form()
    column = builder.column("Optional")
    builder.bind(form, column)

    with pytest.raises(ValidationError):
        form_submission_service.create_submission(db, form.id, "a@b.co", {"999": "x"})

    assert _rows(db) == []


def test_create_submission_rejects_paid_form(db, paid_form):
    form, first, _ = paid_form

    with pytest.raises(PaymentRequired) as exc_info:
        form_submission_service.create_submission(db, form.id, "a@b.co", {first.id: "A"})

    assert exc_info.value.to_dict()["payment_required"] is True
    assert _rows(db) == []


def test_create_submission_rejects_inactive_form(db, builder):
    form = builder.form(is_active=False)

    with pytest.raises(FormNotFound):
        form_submission_service.create_submission(db, form.id, "a@b.co", {"1": "x"})


def test_each_create_gets_a_fresh_submission_id(db, free_form):
    form, name, _ = free_form

    first = form_submission_service.create_submission(db, form.id, "a@b.co", {name.id: "A"})
    second = form_submission_service.create_submission(db, form.id, "a@b.co", {name.id: "B"})

    assert isinstance(first, uuid.UUID)
    assert first != second


def test_upload_is_stored_and_referenced(db, builder, pdf_bytes):
    form = builder.form()
    resume = builder.column("Resume", "file")
    builder.bind(form, resume)
    asset = UploadedAsset("cv.pdf", "application/pdf", pdf_bytes(2))

    submission_id = form_submission_service.create_submission(
        db, form.id, "a@b.co", {resume.id: asset}
    )

    (row,) = _rows(db, submission_id)
    assert row.value.startswith(f"{settings.PUBLIC_UPLOADS_PREFIX}/form_submissions/{form.id}/")
    stored = os.path.join(
        settings.LOCAL_STORAGE_PATH,
        row.value[len(settings.PUBLIC_UPLOADS_PREFIX) + 1:],
    )
    assert os.path.exists(stored)


def test_upload_failure_writes_nothing(db, builder, pdf_bytes, monkeypatch):
    form = builder.form()
    name = builder.column("Name")
    resume = builder.column("Resume", "file")
    builder.bind(form, name, sequence_no=1)
    builder.bind(form, resume, sequence_no=2)

    def fail(*_args, **_kwargs):
        raise UploadFailed()

    monkeypatch.setattr(storage_service, "store_asset", fail)

    with pytest.raises(UploadFailed):
        form_submission_service.create_submission(
            db,
            form.id,
            "a@b.co",
            {name.id: "Al", resume.id: UploadedAsset("cv.pdf", "application/pdf", pdf_bytes(2))},
        )

    assert _rows(db) == []


def test_rolled_back_upload_is_deleted(db, builder, pdf_bytes, monkeypatch):
    form = builder.form()
    resume = builder.column("Resume", "file")
    builder.bind(form, resume)
    deleted: list[str] = []
    monkeypatch.setattr(storage_service, "delete_asset", deleted.append)

    asset = UploadedAsset("cv.pdf", "application/pdf", pdf_bytes(2))
    form_obj = form_service.get_open_form(db, form.id)
    submission_id, _, _ = form_submission_service.stage_submission(
        db, form_obj, "a@b.co", {resume.id: asset}
    )
    (row,) = _rows(db, submission_id)
    reference = row.value
    db.rollback()

    assert deleted == [reference]
    assert _rows(db) == []


def test_required_file_column_rejects_text_on_create(db, builder):
    form = builder.form()
    resume = builder.column("Resume", "file")
    builder.bind(form, resume)
    builder.rule(form, resume, ValidationKind.REQUIRED)

    with pytest.raises(FileValidationError) as exc_info:
        form_submission_service.create_submission(
            db, form.id, "a@b.co", {resume.id: "not-a-file"}
        )

    assert exc_info.value.col_id == resume.id
    assert _rows(db) == []


def test_update_keeps_stored_file_reference(db, builder, pdf_bytes):
    form = builder.form()
    name = builder.column("Name")
    resume = builder.column("Resume", "file")
    builder.bind(form, name, sequence_no=1)
    builder.bind(form, resume, sequence_no=2)
    submission_id = form_submission_service.create_submission(
        db,
        form.id,
        "a@b.co",
        {name.id: "Al", resume.id: UploadedAsset("cv.pdf", "application/pdf", pdf_bytes(2))},
    )
    reference = next(r.value for r in _rows(db, submission_id) if r.column_id == resume.id)

    form_submission_service.update_submission(
        db, submission_id, form.id, "a@b.co", {name.id: "Alan", resume.id: reference}
    )
    assert [r.value for r in _rows(db, submission_id)] == ["Alan", reference]

    with pytest.raises(FileValidationError):
        form_submission_service.update_submission(
            db, submission_id, form.id, "a@b.co", {resume.id: "/uploads/elsewhere.pdf"}
        )
    assert [r.value for r in _rows(db, submission_id)] == ["Alan", reference]


# =============================================================================
# Update
# =============================================================================

def test_update_overwrites_existing_values_only(db, builder):
    form = builder.form()
    a = builder.column("A")
    b = builder.column("B")
    builder.bind(form, a, sequence_no=1)
    builder.bind(form, b, sequence_no=2)
    submission_id = form_submission_service.create_submission(db, form.id, "a@b.co", {a.id: "old"})

    updated = form_submission_service.update_submission(
        db, submission_id, form.id, "a@b.co", {a.id: "new", b.id: "added?"}
    )

    rows = _rows(db, submission_id)
    assert updated == 1
    assert [(r.column_id, r.value) for r in rows] == [(a.id, "new")]


def test_update_requires_matching_submitter(db, free_form):
    form, name, _ = free_form
    submission_id = form_submission_service.create_submission(db, form.id, "a@b.co", {name.id: "A"})

    with pytest.raises(SubmitterNotFound):
        form_submission_service.update_submission(db, submission_id, form.id, "x@y.zz", {name.id: "B"})

    form_submission_service.create_submission(db, form.id, "other@b.co", {name.id: "O"})
    with pytest.raises(SubmissionNotFound):
        form_submission_service.update_submission(
            db, submission_id, form.id, "other@b.co", {name.id: "B"}
        )


def test_update_validation_failure_leaves_values(db, free_form):
    form, name, email = free_form
    submission_id = form_submission_service.create_submission(
        db, form.id, "a@b.co", {name.id: "A", email.id: "a@b.co"}
    )

    with pytest.raises(ValidationError):
        form_submission_service.update_submission(
            db, submission_id, form.id, "a@b.co", {name.id: "Changed", email.id: "broken"}
        )

    assert [r.value for r in _rows(db, submission_id)] == ["A", "a@b.co"]


# =============================================================================
# Reads
# =============================================================================

def test_check_existing_submission(db, free_form):
    form, name, _ = free_form

    assert form_submission_service.check_existing_submission(db, form.id, "a@b.co") == (False, None)

    submission_id = form_submission_service.create_submission(db, form.id, "a@b.co", {name.id: "A"})

    assert form_submission_service.check_existing_submission(db, form.id, "a@b.co") == (
        True,
        submission_id,
    )


def test_soft_deleted_submission_disappears_from_reads(db, free_form):
    form, name, _ = free_form
    submission_id = form_submission_service.create_submission(db, form.id, "a@b.co", {name.id: "A"})

    form_submission_service.soft_delete_submission(db, submission_id, form.id, "a@b.co")

    assert form_submission_service.check_existing_submission(db, form.id, "a@b.co") == (False, None)
    listing = form_submission_service.list_submitter_values(db, form.id, "a@b.co")
    assert listing["submissions"] == []


def test_admin_reads_group_values_per_submission(db, admin, free_form):
    form, name, email = free_form
    form_submission_service.create_submission(
        db, form.id, "a@b.co", {name.id: "A", email.id: "a@b.co"}
    )
    form_submission_service.create_submission(db, form.id, "c@d.co", {name.id: "C"})

    result = form_submission_service.list_form_values(db, admin.id, form.id)

    assert [c["column_name"] for c in result["columns"]] == ["Name", "Email"]
    by_identifier = {s["identifier"]: s["values"] for s in result["submissions"]}
    assert by_identifier == {
        "a@b.co": {name.id: "A", email.id: "a@b.co"},
        "c@d.co": {name.id: "C"},
    }

    summaries = form_submission_service.list_submission_summaries(db, admin.id)
    assert len(summaries) == 2
    assert all(s["gateway_payment_id"] is None for s in summaries)


def test_admin_reads_are_owner_scoped(db, other_admin, free_form):
    form, name, _ = free_form
    form_submission_service.create_submission(db, form.id, "a@b.co", {name.id: "A"})

    with pytest.raises(FormNotFound):
        form_submission_service.list_form_values(db, other_admin.id, form.id)
    assert form_submission_service.list_values_by_identifier(db, other_admin.id, "a@b.co") == []
    assert form_submission_service.list_submission_summaries(db, other_admin.id) == []


def test_free_form_with_optional_dropdown(db, builder):
    form = builder.form("F1", fee=0)
    c1 = builder.column("C1")
    c2 = builder.column("C2", "dropdown")
    builder.bind(form, c1, sequence_no=1)
    builder.bind(form, c2, sequence_no=2)
    builder.options(form, c2, "A", "B")
    builder.rule(form, c1, ValidationKind.REQUIRED)

    submission_id = form_submission_service.create_submission(db, form.id, "a@b.co", {c1.id: "hello"})

    assert [(r.column_id, r.value) for r in _rows(db)] == [(c1.id, "hello")]
    assert _rows(db)[0].submission_id == submission_id

    with pytest.raises(MissingRequiredField) as exc_info:
        form_submission_service.create_submission(db, form.id, "a@b.co", {})
    assert exc_info.value.col_id == c1.id
    assert len(_rows(db)) == 1

"""Tests for submission value validation."""
import pytest

from formbuilder.core.exceptions import (
    FilePageCountInvalid,
    FileValidationError,
    InvalidFieldValue,
    MissingRequiredField,
)
from formbuilder.schemas.forms import ColumnDescriptor
from formbuilder.services.submission_validator import (
    UploadedAsset,
    parse_column_values,
    validate_submission,
)


def _col(col_id: int, data_type: str = "text", **kwargs) -> ColumnDescriptor:
    return ColumnDescriptor(
        binding_id=col_id,
        col_id=col_id,
        column_name=kwargs.pop("column_name", f"col{col_id}"),
        data_type=data_type,
        sequence_no=col_id,
        form_no=1,
        **kwargs,
    )


def test_required_column_missing_is_rejected():
    schema = [_col(1, required=True, validations=["required"]), _col(2)]

    with pytest.raises(MissingRequiredField) as exc_info:
        validate_submission(schema, {"2": "x"})

    assert exc_info.value.col_id == 1


def test_required_column_blank_is_rejected():
    schema = [_col(1, required=True)]

    with pytest.raises(MissingRequiredField):
        validate_submission(schema, {1: "   "})


def test_first_failure_in_schema_order_wins():
    schema = [_col(1, "number"), _col(2, required=True)]

    with pytest.raises(InvalidFieldValue) as exc_info:
        validate_submission(schema, {1: "abc"})

    assert exc_info.value.col_id == 1


def test_keys_outside_schema_are_ignored():
    schema = [_col(1)]

    result = validate_submission(schema, {"1": "hello", "99": "ignored", "name": "x"})

    assert result.values == {1: "hello"}


def test_boolean_values_normalize_to_digits():
    schema = [_col(1, "boolean"), _col(2, "boolean"), _col(3, "boolean")]

    result = validate_submission(schema, {1: True, 2: "false", 3: ""})

    assert result.values == {1: "1", 2: "0", 3: "0"}


def test_boolean_rejects_garbage():
    with pytest.raises(InvalidFieldValue):
        validate_submission([_col(1, "boolean")], {1: "maybe"})


def test_dropdown_requires_known_option():
    schema = [_col(1, "dropdown", option_values=["S", "M"])]

    assert validate_submission(schema, {1: "M"}).values == {1: "M"}
    with pytest.raises(InvalidFieldValue):
        validate_submission(schema, {1: "XL"})


def test_choice_columns_without_options_accept_free_text():
    schema = [_col(1, "dropdown"), _col(2, "radio"), _col(3, "checkbox")]

    result = validate_submission(schema, {1: "anything", 2: "other", 3: ["x", "y"]})

    assert result.values == {1: "anything", 2: "other", 3: "x,y"}


def test_checkbox_joins_selected_options():
    schema = [_col(1, "checkbox", option_values=["red", "green", "blue"])]

    assert validate_submission(schema, {1: ["red", "blue"]}).values == {1: "red,blue"}
    assert validate_submission(schema, {1: "green, red"}).values == {1: "green,red"}
    with pytest.raises(InvalidFieldValue):
        validate_submission(schema, {1: ["red", "purple"]})


def test_email_and_phone_formats():
    schema = [_col(1, "email"), _col(2, "text", validations=["phone"])]

    result = validate_submission(schema, {1: "a@b.co", 2: "+91 98765 43210"})
    assert result.values == {1: "a@b.co", 2: "+91 98765 43210"}

    with pytest.raises(InvalidFieldValue):
        validate_submission(schema, {1: "not-an-email"})
    with pytest.raises(InvalidFieldValue):
        validate_submission(schema, {1: "a@b.co", 2: "call me"})


def test_numeric_rule_and_date_type():
    schema = [_col(1, "text", validations=["numeric"]), _col(2, "date")]

    assert validate_submission(schema, {1: "42.5", 2: "2024-02-29"}).values == {
        1: "42.5",
        2: "2024-02-29",
    }
    with pytest.raises(InvalidFieldValue):
        validate_submission(schema, {2: "29/02/2024"})


def test_present_but_empty_optional_value_is_kept_blank():
    result = validate_submission([_col(1), _col(2)], {1: ""})

    assert result.values == {1: ""}


def test_partial_skips_absent_required_columns():
    schema = [_col(1, required=True), _col(2)]

    result = validate_submission(schema, {2: "x"}, partial=True)

    assert result.values == {2: "x"}
    with pytest.raises(MissingRequiredField):
        validate_submission(schema, {1: ""}, partial=True)


# =============================================================================
# Files
# =============================================================================

def _pdf_asset(data: bytes) -> UploadedAsset:
    return UploadedAsset(filename="resume.pdf", content_type="application/pdf", data=data)


def test_single_page_pdf_is_rejected(pdf_bytes):
    with pytest.raises(FilePageCountInvalid) as exc_info:
        validate_submission([_col(5, "file")], {5: _pdf_asset(pdf_bytes(1))})

    assert exc_info.value.actual_pages == 1
    assert exc_info.value.col_id == 5


def test_pdf_within_page_range_is_accepted(pdf_bytes):
    asset = _pdf_asset(pdf_bytes(2))

    result = validate_submission([_col(5, "file")], {5: asset})

    assert result.files == {5: asset}
    assert result.values == {}


def test_pdf_above_page_range_is_rejected(pdf_bytes):
    with pytest.raises(FilePageCountInvalid):
        validate_submission([_col(5, "file")], {5: _pdf_asset(pdf_bytes(4))})


def test_malformed_pdf_is_rejected():
    with pytest.raises(FileValidationError):
        validate_submission([_col(5, "file")], {5: _pdf_asset(b"%PDF-1.4 truncated")})


def test_executable_upload_is_rejected():
    asset = UploadedAsset(filename="photo.png", content_type="image/png", data=b"MZ\x90\x00")

    with pytest.raises(FileValidationError):
        validate_submission([_col(5, "file")], {5: asset})


def test_file_column_rejects_text_on_create():
    with pytest.raises(FileValidationError) as exc_info:
        validate_submission([_col(5, "file", required=True)], {5: "x"})

    assert exc_info.value.col_id == 5


def test_partial_file_column_accepts_only_stored_reference():
    stored = {5: "/uploads/form_submissions/1/a.pdf"}

    result = validate_submission(
        [_col(5, "file")], {5: "/uploads/form_submissions/1/a.pdf"}, partial=True, existing=stored
    )
    assert result.values == stored

    with pytest.raises(FileValidationError):
        validate_submission(
            [_col(5, "file")], {5: "/uploads/form_submissions/1/b.pdf"}, partial=True, existing=stored
        )
    with pytest.raises(FileValidationError):
        validate_submission([_col(5, "file")], {5: "/uploads/form_submissions/1/a.pdf"}, partial=True)


def test_file_payload_on_text_column_is_rejected():
    asset = UploadedAsset(filename="a.txt", content_type="text/plain", data=b"hi")

    with pytest.raises(InvalidFieldValue):
        validate_submission([_col(1)], {1: asset})


def test_parse_column_values_rejects_non_object():
    assert parse_column_values('{"3": "x", "skip": 1}') == {3: "x"}
    with pytest.raises(InvalidFieldValue):
        parse_column_values("[1, 2]")

"""Validates raw submitted values against an assembled form schema.

Values are checked in schema order and the first failure rejects the whole
submission. Keys that are not part of the schema are ignored. Everything that
passes is coerced to text; file payloads are returned separately so the
writer can store them before persisting a reference.
"""

from __future__ import annotations

import io
import json
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from formbuilder.core.config import settings
from formbuilder.core.exceptions import (
    FilePageCountInvalid,
    FileValidationError,
    InvalidFieldValue,
    MissingRequiredField,
)
from formbuilder.db.enums import DataType, ValidationKind
from formbuilder.schemas.forms import ColumnDescriptor

# Extensions that are always blocked for security
BLOCKED_EXTENSIONS = {
    "exe",
    "dll",
    "com",
    "bat",
    "cmd",
    "sh",
    "vbs",
    "js",
    "jsp",
    "php",
    "pl",
    "py",
    "cgi",
    "msi",
    "scr",
}
_EXECUTABLE_SIGNATURE_PREFIXES = (
    b"MZ",  # Windows PE
    b"\x7fELF",  # Linux ELF
    b"\xfe\xed\xfa\xce",  # Mach-O (32-bit)
    b"\xfe\xed\xfa\xcf",  # Mach-O (64-bit)
    b"\xcf\xfa\xed\xfe",  # Mach-O (reverse endian)
    b"\xca\xfe\xba\xbe",  # Mach-O fat
)
_PDF_SIGNATURE = b"%PDF-"
PDF_CONTENT_TYPE = "application/pdf"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[0-9][0-9\s()-]{6,19}$")
_TRUE_TOKENS = {"1", "true", "yes", "on", "y"}
_FALSE_TOKENS = {"0", "false", "no", "off", "n", ""}


@dataclass
class UploadedAsset:
    """Binary payload submitted for a file-type column."""

    filename: str
    content_type: str | None
    data: bytes

    @property
    def extension(self) -> str:
        return self.filename.rsplit(".", 1)[-1].lower() if "." in self.filename else ""

    @property
    def is_pdf(self) -> bool:
        content_type = (self.content_type or "").split(";", 1)[0].strip().lower()
        return content_type == PDF_CONTENT_TYPE or self.extension == "pdf"


@dataclass
class ValidatedSubmission:
    """Text values ready to persist plus file payloads still to be stored."""

    values: dict[int, str] = field(default_factory=dict)
    files: dict[int, UploadedAsset] = field(default_factory=dict)

    @property
    def column_ids(self) -> set[int]:
        return set(self.values) | set(self.files)


def normalize_raw_values(raw: Mapping[Any, Any] | None) -> dict[int, Any]:
    """Key raw values by integer column id, dropping keys that are not ids."""
    if not raw:
        return {}
    normalized: dict[int, Any] = {}
    for key, value in raw.items():
        if isinstance(key, int) and not isinstance(key, bool):
            normalized[key] = value
            continue
        cleaned = str(key).strip()
        if cleaned.isdigit():
            normalized[int(cleaned)] = value
    return normalized


def parse_column_values(payload: str | None) -> dict[int, Any]:
    """Decode the ``columnValues`` JSON object sent alongside multipart uploads."""
    if payload is None or payload == "":
        return {}
    try:
        decoded = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise InvalidFieldValue(0, "columnValues must be a JSON object") from exc
    if not isinstance(decoded, dict):
        raise InvalidFieldValue(0, "columnValues must be a JSON object")
    return normalize_raw_values(decoded)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, UploadedAsset):
        return len(value.data) == 0
    return False


# =============================================================================
# Files
# =============================================================================

def count_pdf_pages(data: bytes) -> int:
    reader = PdfReader(io.BytesIO(data))
    return len(reader.pages)


def validate_file(column: ColumnDescriptor, asset: UploadedAsset) -> None:
    """
    Check an uploaded payload for a file column.

    PDFs must parse and fall within the configured page range.
    """
    col_id = column.col_id
    if len(asset.data) > settings.MAX_UPLOAD_SIZE_BYTES:
        max_mb = settings.MAX_UPLOAD_SIZE_BYTES / (1024 * 1024)
        raise FileValidationError(col_id, f"File size exceeds {max_mb:.0f} MB limit")

    if asset.extension in BLOCKED_EXTENSIONS:
        raise FileValidationError(col_id, f"File extension '.{asset.extension}' not allowed")
    if asset.data.startswith(_EXECUTABLE_SIGNATURE_PREFIXES):
        raise FileValidationError(col_id, "Executable files are not allowed")

    if not asset.is_pdf:
        return

    if not asset.data.lstrip()[:1024].startswith(_PDF_SIGNATURE):
        raise FileValidationError(col_id, "File content does not match PDF format")
    try:
        pages = count_pdf_pages(asset.data)
    except (PyPdfError, ValueError, KeyError, IndexError, TypeError, OSError) as exc:
        raise FileValidationError(col_id, "Could not read PDF file") from exc

    if not settings.PDF_MIN_PAGES <= pages <= settings.PDF_MAX_PAGES:
        raise FilePageCountInvalid(
            col_id,
            actual_pages=pages,
            min_pages=settings.PDF_MIN_PAGES,
            max_pages=settings.PDF_MAX_PAGES,
        )


# =============================================================================
# Scalar values
# =============================================================================

def _as_text(column: ColumnDescriptor, value: Any) -> str:
    if isinstance(value, (dict, list, tuple, UploadedAsset)):
        raise InvalidFieldValue(column.col_id, f"Field '{column.column_name}' must be a single value")
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value).strip() if isinstance(value, str) else str(value)


def _normalize_boolean(column: ColumnDescriptor, value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)) and value in (0, 1):
        return "1" if value else "0"
    token = str(value).strip().lower()
    if token in _TRUE_TOKENS:
        return "1"
    if token in _FALSE_TOKENS:
        return "0"
    raise InvalidFieldValue(column.col_id, f"Field '{column.column_name}' must be a boolean")


def _normalize_choices(column: ColumnDescriptor, value: Any) -> str:
    if isinstance(value, (list, tuple)):
        items = [_as_text(column, item) for item in value]
    else:
        items = [item.strip() for item in _as_text(column, value).split(",")]
    items = [item for item in items if item]
    # No options configured means free text
    if column.option_values:
        allowed = set(column.option_values)
        for item in items:
            if item not in allowed:
                raise InvalidFieldValue(column.col_id, f"Invalid option for '{column.column_name}'")
    return ",".join(items)


def _check_number(column: ColumnDescriptor, text: str) -> None:
    try:
        float(text)
    except ValueError as exc:
        raise InvalidFieldValue(
            column.col_id, f"Field '{column.column_name}' must be a number"
        ) from exc


def _validate_value(column: ColumnDescriptor, value: Any) -> str:
    data_type = column.data_type

    if data_type == DataType.BOOLEAN.value:
        return _normalize_boolean(column, value)

    if data_type == DataType.CHECKBOX.value:
        return _normalize_choices(column, value)

    text = _as_text(column, value)

    if data_type in (DataType.DROPDOWN.value, DataType.RADIO.value):
        if column.option_values and text not in column.option_values:
            raise InvalidFieldValue(column.col_id, f"Invalid option for '{column.column_name}'")
    elif data_type == DataType.NUMBER.value:
        _check_number(column, text)
    elif data_type == DataType.DATE.value:
        try:
            date.fromisoformat(text[:10])
        except ValueError as exc:
            raise InvalidFieldValue(
                column.col_id, f"Field '{column.column_name}' must be a date (YYYY-MM-DD)"
            ) from exc

    if data_type == DataType.EMAIL.value or ValidationKind.EMAIL.value in column.validations:
        if not _EMAIL_RE.match(text):
            raise InvalidFieldValue(
                column.col_id, f"Field '{column.column_name}' must be a valid email address"
            )
    if data_type == DataType.PHONE.value or ValidationKind.PHONE.value in column.validations:
        if not _PHONE_RE.match(text):
            raise InvalidFieldValue(
                column.col_id, f"Field '{column.column_name}' must be a valid phone number"
            )
    if ValidationKind.NUMERIC.value in column.validations:
        _check_number(column, text)
    return text


# =============================================================================
# Entry point
# =============================================================================

def validate_submission(
    schema: list[ColumnDescriptor],
    raw_values: Mapping[Any, Any] | None,
    partial: bool = False,
    existing: Mapping[int, str] | None = None,
) -> ValidatedSubmission:
    """
    Validate ``raw_values`` (column id -> value or ``UploadedAsset``) against ``schema``.

    ``partial`` validates only the columns that are present, for in-place updates;
    required columns are still rejected when sent empty. File columns need an
    upload, except that a partial update may echo back the reference already
    stored for that column in ``existing``.

    Raises:
        MissingRequiredField, InvalidFieldValue, FileValidationError,
        FilePageCountInvalid: First failing column, in schema order
    """
    values = normalize_raw_values(raw_values)
    result = ValidatedSubmission()

    for column in schema:
        present = column.col_id in values
        value = values.get(column.col_id)

        if _is_empty(value):
            if column.required and (present or not partial):
                raise MissingRequiredField(column.col_id, column.column_name)
            if not present or column.data_type == DataType.FILE.value:
                continue
            if column.data_type == DataType.BOOLEAN.value:
                result.values[column.col_id] = "0"
            else:
                result.values[column.col_id] = ""
            continue

        if column.data_type == DataType.FILE.value:
            if isinstance(value, UploadedAsset):
                validate_file(column, value)
                result.files[column.col_id] = value
            elif (
                partial
                and isinstance(value, str)
                and existing is not None
                and value.strip() == existing.get(column.col_id)
            ):
                result.values[column.col_id] = value.strip()
            else:
                raise FileValidationError(column.col_id, "A file upload is required")
            continue

        if isinstance(value, UploadedAsset):
            raise InvalidFieldValue(
                column.col_id, f"Field '{column.column_name}' does not accept files"
            )
        result.values[column.col_id] = _validate_value(column, value)

    return result

"""Enum definitions for form-builder constants."""

from enum import Enum


class DataType(str, Enum):
    """Declared type of a dynamic column (governs validation, not storage)."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    EMAIL = "email"
    PHONE = "phone"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"
    BOOLEAN = "boolean"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_

    @classmethod
    def normalize(cls, value: str | None) -> str:
        """Lower-case a stored data type; unknown types fall back to text."""
        cleaned = (value or "").strip().lower()
        if cls.has_value(cleaned):
            return cleaned
        return cls.TEXT.value


class OptionKind(str, Enum):
    """Option tables attached to a column-in-form."""

    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"


OPTION_DATA_TYPES = frozenset(kind.value for kind in OptionKind)


class ValidationKind(str, Enum):
    """Validation catalog seeded into ``validation_types``."""

    REQUIRED = "required"
    EMAIL = "email"
    PHONE = "phone"
    NUMERIC = "numeric"


class PaymentStatus(str, Enum):
    CREATED = "created"
    CAPTURED = "captured"
    FAILED = "failed"


DEFAULT_ADMIN_ROLE = 2

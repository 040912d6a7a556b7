"""Domain error taxonomy shared by services and routers.

Every error carries an HTTP ``status_code`` and a machine-readable ``code`` so the
API layer can render it without inspecting message text. Validation and conflict
errors are raised before any write; persistence errors are raised after a
rollback and never carry store internals in their message.
"""

from typing import Any


class FormBuilderError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


# =============================================================================
# Validation (caller's fault, recoverable by resubmitting)
# =============================================================================

class ValidationError(FormBuilderError, ValueError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input"


class MissingRequiredField(ValidationError):
    code = "missing_required_field"

    def __init__(self, col_id: int, column_name: str | None = None):
        label = column_name or str(col_id)
        super().__init__(f"Missing required field: {label}", col_id=col_id)
        self.col_id = col_id


class InvalidFieldValue(ValidationError):
    code = "invalid_field_value"

    def __init__(self, col_id: int, reason: str):
        super().__init__(reason, col_id=col_id)
        self.col_id = col_id


class FileValidationError(ValidationError):
    code = "file_validation_error"

    def __init__(self, col_id: int, reason: str = "Could not validate uploaded file"):
        super().__init__(reason, col_id=col_id)
        self.col_id = col_id


class FilePageCountInvalid(FileValidationError):
    code = "file_page_count_invalid"

    def __init__(self, col_id: int, actual_pages: int, min_pages: int, max_pages: int):
        ValidationError.__init__(
            self,
            f"PDF must be between {min_pages} and {max_pages} pages",
            col_id=col_id,
            actual_pages=actual_pages,
        )
        self.col_id = col_id
        self.actual_pages = actual_pages


# =============================================================================
# Conflicts
# =============================================================================

class ConflictError(FormBuilderError):
    status_code = 409
    code = "conflict"
    default_message = "Conflicting request"


class DuplicateColumn(ConflictError):
    code = "duplicate_column"
    default_message = "Duplicate column name already exists in this form"


class DuplicateSubmission(ConflictError):
    code = "duplicate_submission"
    default_message = "A submission already exists for this form"


class DuplicatePayment(ConflictError):
    code = "duplicate_payment"
    default_message = "Payment has already been recorded"


# =============================================================================
# Not found
# =============================================================================

class NotFoundError(FormBuilderError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class FormNotFound(NotFoundError):
    code = "form_not_found"
    default_message = "Form not found"


class ColumnNotFound(NotFoundError):
    code = "column_not_found"
    default_message = "Column not found"


class BindingNotFound(NotFoundError):
    code = "form_detail_not_found"
    default_message = "Form detail not found"


class OptionNotFound(NotFoundError):
    code = "option_not_found"
    default_message = "Option not found"


class ValidationRuleNotFound(NotFoundError):
    code = "validation_rule_not_found"
    default_message = "Validation detail not found"


class SubmissionNotFound(NotFoundError):
    code = "submission_not_found"
    default_message = "Submission not found"


class SubmitterNotFound(NotFoundError):
    code = "submitter_not_found"
    default_message = "Submitter not found"


# =============================================================================
# Payments
# =============================================================================

class PaymentError(FormBuilderError):
    status_code = 400
    code = "payment_error"
    default_message = "Payment could not be processed"


class InvalidSignature(PaymentError):
    code = "payment_verification_failed"
    default_message = "Payment could not be verified"


class PaymentRequired(PaymentError):
    status_code = 402
    code = "payment_required"
    default_message = "Payment required. Please use the payment flow to submit."

    def __init__(self, message: str | None = None):
        super().__init__(message, payment_required=True)


class GatewayError(PaymentError):
    status_code = 502
    code = "payment_gateway_error"
    default_message = "Payment gateway request failed"


# =============================================================================
# Collaborator + infrastructure failures
# =============================================================================

class StorageError(FormBuilderError):
    status_code = 502
    code = "storage_error"
    default_message = "File storage failed"


class UploadFailed(StorageError):
    code = "upload_failed"
    default_message = "Error uploading one or more files"


class MessagingError(FormBuilderError):
    status_code = 502
    code = "messaging_error"
    default_message = "Message could not be delivered"


class AuthenticationError(FormBuilderError):
    status_code = 401
    code = "authentication_failed"
    default_message = "Invalid credentials or inactive account"


class PersistenceError(FormBuilderError):
    status_code = 500
    code = "persistence_error"
    default_message = "Server error while saving data"

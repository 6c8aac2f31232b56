"""Exception hierarchy for Fieldwork Billing.

All application exceptions inherit from FieldworkBillingError.
This allows catching all application errors with a single base class
while preserving specificity for individual error types.

The document store itself reports expected conditions (missing documents,
ignored transitions) through return values. These exceptions cover the
boundaries: API/CLI translation of those results, programming errors and
storage failures.
"""

from typing import Any
from uuid import UUID


class FieldworkBillingError(Exception):
    """Base exception for all Fieldwork Billing errors.

    Includes optional error_code for API responses and extra context.
    """

    error_code: str = "FWB_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Document Errors
# =============================================================================


class DocumentError(FieldworkBillingError):
    """Base exception for financial document errors."""

    error_code = "DOCUMENT_ERROR"
    status_code = 400


class DocumentNotFoundError(DocumentError):
    """Raised when a document cannot be found."""

    error_code = "DOCUMENT_NOT_FOUND"
    status_code = 404

    def __init__(self, kind: str, document_id: UUID | str) -> None:
        super().__init__(
            f"{kind.replace('_', ' ').capitalize()} not found: {document_id}",
            context={"kind": kind, "document_id": str(document_id)},
        )


class LineItemNotFoundError(DocumentError):
    """Raised when a line item is not part of its document."""

    error_code = "LINE_ITEM_NOT_FOUND"
    status_code = 404

    def __init__(self, document_id: UUID | str, line_item_id: UUID | str) -> None:
        super().__init__(
            f"Line item {line_item_id} not found on document {document_id}",
            context={
                "document_id": str(document_id),
                "line_item_id": str(line_item_id),
            },
        )


class PaymentNotFoundError(DocumentError):
    """Raised when a payment is not recorded on an invoice."""

    error_code = "PAYMENT_NOT_FOUND"
    status_code = 404

    def __init__(self, invoice_id: UUID | str, payment_id: UUID | str) -> None:
        super().__init__(
            f"Payment {payment_id} not found on invoice {invoice_id}",
            context={"invoice_id": str(invoice_id), "payment_id": str(payment_id)},
        )


class TimeEntryNotFoundError(DocumentError):
    """Raised when a time entry is not recorded on a work order."""

    error_code = "TIME_ENTRY_NOT_FOUND"
    status_code = 404

    def __init__(self, work_order_id: UUID | str, time_entry_id: UUID | str) -> None:
        super().__init__(
            f"Time entry {time_entry_id} not found on work order {work_order_id}",
            context={
                "work_order_id": str(work_order_id),
                "time_entry_id": str(time_entry_id),
            },
        )


class ImmutableFieldError(DocumentError):
    """Raised when an update touches a system-managed field."""

    error_code = "IMMUTABLE_FIELD"

    def __init__(self, field_name: str) -> None:
        super().__init__(
            f"Field cannot be changed after creation: {field_name}",
            context={"field": field_name},
        )


class UnknownFieldError(DocumentError):
    """Raised when an update names a field the document does not have."""

    error_code = "UNKNOWN_FIELD"

    def __init__(self, kind: str, field_name: str) -> None:
        super().__init__(
            f"Unknown {kind} field: {field_name}",
            context={"kind": kind, "field": field_name},
        )


class StaleDocumentError(DocumentError):
    """Raised by boundaries when an optimistic version check fails."""

    error_code = "STALE_DOCUMENT"
    status_code = 409

    def __init__(self, document_id: UUID | str, expected: int) -> None:
        super().__init__(
            f"Document {document_id} changed since version {expected}",
            context={"document_id": str(document_id), "expected_version": expected},
        )


# =============================================================================
# Conversion Errors
# =============================================================================


class UnsupportedConversionError(DocumentError):
    """Raised when no conversion route exists between two document kinds."""

    error_code = "UNSUPPORTED_CONVERSION"

    def __init__(self, source_kind: str, target_kind: str) -> None:
        super().__init__(
            f"Cannot convert {source_kind} to {target_kind}",
            context={"source_kind": source_kind, "target_kind": target_kind},
        )


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(FieldworkBillingError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidAmountError(ValidationError):
    """Raised when an invalid quantity, rate or payment amount is provided."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str) -> None:
        super().__init__(
            f"Invalid amount '{amount}': {reason}",
            context={"amount": amount, "reason": reason},
        )


class InvalidFieldValueError(ValidationError):
    """Raised when a field value cannot be converted to its domain type."""

    error_code = "INVALID_FIELD_VALUE"

    def __init__(self, field_name: str, value: Any) -> None:
        super().__init__(
            f"Invalid value for {field_name}: {value!r}",
            context={"field": field_name, "value": repr(value)},
        )


class InvalidPaymentTermsError(ValidationError):
    """Raised when payment terms text cannot be interpreted."""

    error_code = "INVALID_PAYMENT_TERMS"

    def __init__(self, terms: str) -> None:
        super().__init__(
            f"Unrecognized payment terms: {terms}",
            context={"payment_terms": terms},
        )


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(FieldworkBillingError):
    """Raised when the persistence collaborator fails."""

    error_code = "STORAGE_ERROR"
    status_code = 500


class SnapshotFormatError(StorageError):
    """Raised when a persisted snapshot cannot be decoded."""

    error_code = "SNAPSHOT_FORMAT_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)

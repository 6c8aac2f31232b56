"""Conversion between documents and their persisted (JSON-safe) form.

This is the only place timestamps become ISO-8601 strings and back.
Decimals are written as strings so stored amounts keep their precision.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID

from fieldwork_billing.domain.documents import (
    DOCUMENT_TYPES,
    FinancialDocument,
    LineItem,
    Payment,
    TimeEntry,
)
from fieldwork_billing.domain.totals import Totals
from fieldwork_billing.domain.value_objects import DocumentKind
from fieldwork_billing.exceptions import InvalidFieldValueError, SnapshotFormatError
from fieldwork_billing.repositories.interfaces import DocumentSnapshot

DATETIME_FIELDS = frozenset(
    {
        "date",
        "created_at",
        "updated_at",
        "valid_until",
        "sent_at",
        "viewed_at",
        "accepted_at",
        "declined_at",
        "scheduled_date",
        "started_at",
        "completed_at",
        "due_date",
        "paid_at",
        "start_time",
        "end_time",
    }
)
UUID_FIELDS = frozenset(
    {
        "id",
        "estimate_id",
        "work_order_id",
        "converted_to_work_order_id",
        "converted_to_invoice_id",
    }
)

_NESTED_RECORDS = frozenset({"line_items", "payments", "time_tracking"})

SNAPSHOT_KEYS = {
    DocumentKind.ESTIMATE: "estimates",
    DocumentKind.WORK_ORDER: "workOrders",
    DocumentKind.INVOICE: "invoices",
}


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _encode(getattr(value, f.name)) for f in fields(value)}
    return value


def document_to_dict(document: FinancialDocument) -> dict[str, Any]:
    data: dict[str, Any] = _encode(document)
    data["kind"] = document.kind.value
    for encoded, item in zip(data["line_items"], document.line_items):
        encoded["amount"] = str(item.amount)
    return data


def _decode_scalar(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in DATETIME_FIELDS:
        return parse_timestamp(value)
    if name in UUID_FIELDS:
        return UUID(value)
    return value


def _decode_record(record_type: type, data: dict[str, Any]) -> Any:
    known = {f.name for f in fields(record_type)}
    kwargs = {
        name: _decode_scalar(name, value)
        for name, value in data.items()
        if name in known
    }
    return record_type(**kwargs)


def document_from_dict(data: dict[str, Any]) -> FinancialDocument:
    try:
        kind = DocumentKind(data["kind"])
        document_type = DOCUMENT_TYPES[kind]
        known = {f.name for f in fields(document_type)}
        kwargs: dict[str, Any] = {}
        for name, value in data.items():
            if name not in known:
                continue
            if name == "line_items":
                kwargs[name] = [_decode_record(LineItem, item) for item in value]
            elif name == "payments":
                kwargs[name] = [_decode_record(Payment, item) for item in value]
            elif name == "time_tracking":
                kwargs[name] = [_decode_record(TimeEntry, item) for item in value]
            elif name == "totals":
                kwargs[name] = Totals(
                    **{key: Decimal(amount) for key, amount in value.items()}
                )
            else:
                kwargs[name] = _decode_scalar(name, value)
        return document_type(**kwargs)
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise SnapshotFormatError(f"Cannot decode stored document: {e}") from e


def decode_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Decode JSON field values (a partial document) into domain values.

    Nested line items, payments and time entries stay mappings so the
    document store can apply its own payload rules to them.
    """
    decoded: dict[str, Any] = {}
    for name, value in changes.items():
        try:
            if name in _NESTED_RECORDS and value is not None:
                decoded[name] = [
                    {key: _decode_scalar(key, v) for key, v in item.items()}
                    for item in value
                ]
            else:
                decoded[name] = _decode_scalar(name, value)
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidFieldValueError(name, value) from e
    return decoded


def snapshot_to_dict(snapshot: DocumentSnapshot) -> dict[str, list[dict[str, Any]]]:
    return {
        key: [document_to_dict(doc) for doc in snapshot.documents(kind)]
        for kind, key in SNAPSHOT_KEYS.items()
    }


def snapshot_from_dict(data: dict[str, list[dict[str, Any]]]) -> DocumentSnapshot:
    decoded = {
        kind: [document_from_dict(item) for item in data.get(key, [])]
        for kind, key in SNAPSHOT_KEYS.items()
    }
    return DocumentSnapshot(
        estimates=decoded[DocumentKind.ESTIMATE],  # type: ignore[arg-type]
        work_orders=decoded[DocumentKind.WORK_ORDER],  # type: ignore[arg-type]
        invoices=decoded[DocumentKind.INVOICE],  # type: ignore[arg-type]
    )


__all__ = [
    "decode_changes",
    "document_from_dict",
    "document_to_dict",
    "parse_timestamp",
    "snapshot_from_dict",
    "snapshot_to_dict",
]

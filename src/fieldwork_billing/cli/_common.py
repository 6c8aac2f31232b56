"""Shared helpers for the Fieldwork Billing command-line interface."""

import argparse
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

from dateutil import parser as date_parser  # type: ignore[import-untyped]

from fieldwork_billing.config import get_settings
from fieldwork_billing.domain.documents import FinancialDocument, LineItem
from fieldwork_billing.domain.value_objects import LineItemType
from fieldwork_billing.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteDocumentRepository,
)
from fieldwork_billing.services.conversion import ConversionService
from fieldwork_billing.services.document_store import DocumentStore


def get_default_db_path() -> Path:
    """Get the default database path in user's home directory."""
    return Path.home() / ".fieldwork_billing" / "documents.db"


def resolve_db_path(args: argparse.Namespace) -> Path:
    database = getattr(args, "database", None)
    return Path(database) if database else get_default_db_path()


def open_store(db_path: Path) -> tuple[SQLiteDatabase, DocumentStore]:
    """Open the database and load a document store from it."""
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    repository = SQLiteDocumentRepository(db)
    store = DocumentStore(
        repository=repository,
        settings=get_settings(),
        number_sequence=repository,
    )
    return db, store


def open_services(
    db_path: Path,
) -> tuple[SQLiteDatabase, DocumentStore, ConversionService]:
    db, store = open_store(db_path)
    return db, store, ConversionService(store, settings=get_settings())


def parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid id: {value}") from None


def parse_datetime(value: str) -> datetime:
    """Parse a date or date-time argument; naive values are taken as UTC."""
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        raise argparse.ArgumentTypeError(f"Invalid date: {value}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}") from None


def parse_line_item(value: str) -> LineItem:
    """Parse ``description:quantity:rate[:type]`` into a line item."""
    parts = value.split(":")
    if len(parts) not in (3, 4) or not parts[0].strip():
        raise argparse.ArgumentTypeError(
            f"Line item must be description:quantity:rate[:type], got {value!r}"
        )
    description, quantity, rate = parts[0].strip(), parts[1], parts[2]
    try:
        item_type = LineItemType(parts[3].strip()) if len(parts) == 4 else None
    except ValueError:
        raise argparse.ArgumentTypeError(f"Unknown line item type: {parts[3]}") from None
    item_type = item_type or LineItemType.MATERIAL
    return LineItem(
        description=description,
        quantity=parse_decimal(quantity),
        rate=parse_decimal(rate),
        type=item_type,
        taxable=item_type.taxable_by_default,
    )


def print_document_table(documents: list[FinancialDocument]) -> None:
    print(f"{'Number':<12} {'Status':<12} {'Customer':<30} {'Total':>12}  {'ID'}")
    print("-" * 106)
    for doc in documents:
        status = doc.status.value  # type: ignore[attr-defined]
        print(
            f"{doc.document_number:<12} {status:<12} {doc.customer_name[:28]:<30} "
            f"{doc.totals.total:>12}  {doc.id}"
        )


def print_document(document: FinancialDocument) -> None:
    status = document.status.value  # type: ignore[attr-defined]
    print(f"{document.document_number} ({document.kind.value}) [{status}]")
    print(f"  ID:       {document.id}")
    print(f"  Customer: {document.customer_name} ({document.customer_id})")
    if document.service_address:
        print(f"  Address:  {document.service_address}")
    for item in sorted(document.line_items, key=lambda i: i.order):
        print(
            f"  - {item.description[:40]:<40} {item.quantity:>8} x {item.rate:>10}"
            f" = {item.amount:>10}"
        )
    totals = document.totals
    print(f"  Subtotal: {totals.subtotal}")
    print(f"  Tax:      {totals.tax_amount}")
    print(f"  Total:    {totals.total}")
    if totals.amount_paid:
        print(f"  Paid:     {totals.amount_paid}")
        print(f"  Balance:  {totals.balance}")
    for name, linked in document.provenance.items():
        print(f"  {name}: {linked}")


def persist(store: DocumentStore) -> bool:
    """Flush the store when autosave is off; autosave already flushed otherwise."""
    if get_settings().autosave:
        return True
    return store.flush()

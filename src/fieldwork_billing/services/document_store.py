"""Document store: the single owner of estimates, work orders and invoices.

Every mutation goes through ``_commit`` which recomputes totals, re-derives
invoice status, bumps the version, stamps ``updated_at`` and flushes the
snapshot to the repository when autosave is enabled.

Expected conditions (unknown ids, ignored transitions) are reported through
the return value: ``None`` for lookups and creations, ``False`` for actions.
Documents handed out are copies; mutate them through the store. Every
public method holds ``DocumentStore.lock``, so API worker threads can share
one store.
"""

from __future__ import annotations

import copy
import functools
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import MISSING, fields, replace
from datetime import UTC, datetime
from typing import Any, TypeVar, cast
from uuid import UUID, uuid4

from fieldwork_billing.config import Settings, get_settings
from fieldwork_billing.domain.documents import (
    Estimate,
    FinancialDocument,
    Invoice,
    LineItem,
    Payment,
    TimeEntry,
    WorkOrder,
)
from fieldwork_billing.domain.numbering import generate_number
from fieldwork_billing.domain.status import (
    ESTIMATE_DECISIONS,
    TRANSITIONS,
    derive_invoice_status,
)
from fieldwork_billing.domain.terms import offset_days, parse_payment_terms
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    InvoiceStatus,
    LineItemType,
    PaymentMethod,
    WorkOrderStatus,
)
from fieldwork_billing.exceptions import (
    ImmutableFieldError,
    InvalidAmountError,
    InvalidPaymentTermsError,
    StorageError,
    UnknownFieldError,
)
from fieldwork_billing.logging_config import get_logger
from fieldwork_billing.repositories.interfaces import (
    DocumentRepository,
    DocumentSnapshot,
    NumberSequence,
)

logger = get_logger(__name__)

# Keys accepted on line item payloads that are derived, never stored.
_DERIVED_LINE_ITEM_KEYS = frozenset({"amount", "unit_price"})


_F = TypeVar("_F", bound=Callable[..., Any])


def _synchronized(method: _F) -> _F:
    """Run a store method while holding the store lock."""

    @functools.wraps(method)
    def wrapper(self: DocumentStore, *args: Any, **kwargs: Any) -> Any:
        with self.lock:
            return method(self, *args, **kwargs)

    return cast(_F, wrapper)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _field_default(document_type: type, name: str) -> Any:
    for f in fields(document_type):
        if f.name == name:
            if f.default_factory is not MISSING:
                return f.default_factory()
            if f.default is not MISSING:
                return f.default
            return None
    raise UnknownFieldError(document_type.__name__, name)


def as_line_item(value: LineItem | Mapping[str, Any]) -> LineItem:
    """Build a LineItem from a payload, discarding any supplied amount.

    ``unit_price`` is accepted as an alias for ``rate``. When ``taxable`` is
    omitted it follows the item type (labor and permits are not taxed).
    """
    if isinstance(value, LineItem):
        return copy.deepcopy(value)
    data = dict(value)
    if "rate" not in data and "unit_price" in data:
        data["rate"] = data["unit_price"]
    for key in _DERIVED_LINE_ITEM_KEYS:
        data.pop(key, None)
    if "taxable" not in data:
        data["taxable"] = LineItemType(
            data.get("type", LineItemType.MATERIAL)
        ).taxable_by_default
    return LineItem(**data)


def as_payment(value: Payment | Mapping[str, Any]) -> Payment:
    if isinstance(value, Payment):
        return copy.deepcopy(value)
    return Payment(**value)


def as_time_entry(value: TimeEntry | Mapping[str, Any]) -> TimeEntry:
    if isinstance(value, TimeEntry):
        return copy.deepcopy(value)
    return TimeEntry(**value)


class DocumentStore:
    """In-memory collections of the three document kinds.

    Args:
        repository: Persistence collaborator. Loaded once on construction
            and saved after each mutation when ``settings.autosave`` is set.
        settings: Lifecycle defaults (validity and payment term offsets,
            number padding, amount validation).
        clock: Source of "now"; injectable for tests.
        number_sequence: Authoritative issued-number source, consulted in
            addition to the in-memory collection when generating numbers.
    """

    def __init__(
        self,
        repository: DocumentRepository | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utc_now,
        number_sequence: NumberSequence | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings or get_settings()
        self._clock = clock
        self._number_sequence = number_sequence
        # Reentrant: public methods call each other, and the conversion
        # service holds it across a create-and-link.
        self.lock = threading.RLock()
        self._documents: dict[DocumentKind, dict[UUID, FinancialDocument]] = {
            kind: {} for kind in DocumentKind
        }
        if repository is not None:
            self._load(repository.load())

    # ------------------------------------------------------------------
    # Snapshot / persistence
    # ------------------------------------------------------------------

    def _load(self, snapshot: DocumentSnapshot) -> None:
        for kind in DocumentKind:
            collection: dict[UUID, FinancialDocument] = {}
            for document in snapshot.documents(kind):
                document.totals = document.compute_totals()
                collection[document.id] = document
            self._documents[kind] = collection
        logger.info(
            "document_store_loaded",
            estimates=len(self._documents[DocumentKind.ESTIMATE]),
            work_orders=len(self._documents[DocumentKind.WORK_ORDER]),
            invoices=len(self._documents[DocumentKind.INVOICE]),
        )

    @_synchronized
    def load_from(self, repository: DocumentRepository) -> None:
        """Replace the in-memory collections with the repository contents."""
        self._load(repository.load())

    @_synchronized
    def snapshot(self) -> DocumentSnapshot:
        return DocumentSnapshot(
            estimates=[
                copy.deepcopy(d)  # type: ignore[misc]
                for d in self._documents[DocumentKind.ESTIMATE].values()
            ],
            work_orders=[
                copy.deepcopy(d)  # type: ignore[misc]
                for d in self._documents[DocumentKind.WORK_ORDER].values()
            ],
            invoices=[
                copy.deepcopy(d)  # type: ignore[misc]
                for d in self._documents[DocumentKind.INVOICE].values()
            ],
        )

    @_synchronized
    def flush(self) -> bool:
        """Save the current collections. Returns False if the save failed."""
        if self._repository is None:
            return False
        try:
            self._repository.save(self.snapshot())
        except StorageError as e:
            logger.error("document_store_flush_failed", error=e.message)
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return self._clock()

    def _find(self, kind: DocumentKind, document_id: UUID) -> FinancialDocument | None:
        document = self._documents[kind].get(document_id)
        if document is None:
            logger.warning(
                "document_not_found", kind=kind.value, document_id=str(document_id)
            )
        return document

    def _existing_numbers(self, kind: DocumentKind) -> set[str]:
        numbers = {d.document_number for d in self._documents[kind].values()}
        if self._number_sequence is not None:
            numbers.update(self._number_sequence.existing_numbers(kind))
        return numbers

    def _payment_terms_days(self, invoice: Invoice) -> int:
        try:
            return parse_payment_terms(invoice.payment_terms)
        except InvalidPaymentTermsError:
            return self._settings.default_payment_terms_days

    def _check_line_items(self, line_items: Iterable[LineItem]) -> None:
        if not self._settings.reject_negative_amounts:
            return
        for item in line_items:
            if item.quantity < 0:
                raise InvalidAmountError(str(item.quantity), "quantity is negative")
            if item.rate < 0:
                raise InvalidAmountError(str(item.rate), "rate is negative")

    def _check_payment(self, payment: Payment) -> None:
        if self._settings.reject_negative_amounts and payment.amount <= 0:
            raise InvalidAmountError(str(payment.amount), "payment must be positive")

    def _commit(self, document: FinancialDocument, event: str, **context: Any) -> None:
        """Recompute derived state, store the document and flush."""
        now = self.now()
        document.totals = document.compute_totals()
        if isinstance(document, Invoice):
            self._derive_invoice_state(document, now)
        document.version += 1
        document.updated_at = now
        self._documents[document.kind][document.id] = document

        logger.info(
            event,
            kind=document.kind.value,
            document_id=str(document.id),
            document_number=document.document_number,
            version=document.version,
            **context,
        )
        if self._settings.autosave:
            self.flush()

    def _derive_invoice_state(self, invoice: Invoice, now: datetime) -> None:
        previous = invoice.status
        invoice.status = derive_invoice_status(invoice, invoice.totals, now)
        if invoice.totals.is_fully_paid:
            if invoice.paid_at is None:
                invoice.paid_at = now
        else:
            invoice.paid_at = None
        if invoice.status != previous:
            logger.info(
                "invoice_status_derived",
                document_id=str(invoice.id),
                previous=previous.value,
                status=invoice.status.value,
            )

    def _edit(self, kind: DocumentKind, document_id: UUID) -> FinancialDocument | None:
        """Return a working copy of a stored document, or None."""
        document = self._find(kind, document_id)
        if document is None:
            return None
        return copy.deepcopy(document)

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    @_synchronized
    def add(self, document: FinancialDocument) -> UUID:
        """Store a new document built from ``document`` and return its id.

        The id, number, timestamps, version and status are assigned here
        regardless of what the payload carries. A missing ``valid_until`` or
        ``due_date`` defaults to the configured offset from now.
        """
        kind = document.kind
        now = self.now()
        line_items = [as_line_item(item) for item in document.line_items]
        self._check_line_items(line_items)

        new = replace(
            copy.deepcopy(document),
            id=uuid4(),
            document_number=generate_number(
                kind, self._existing_numbers(kind), self._settings.number_padding
            ),
            line_items=line_items,
            created_at=now,
            updated_at=now,
            version=0,
        )
        new.status = new.initial_status  # type: ignore[attr-defined]

        if isinstance(new, Estimate) and new.valid_until is None:
            new.valid_until = offset_days(now, self._settings.estimate_validity_days)
        elif isinstance(new, Invoice):
            for payment in new.payments:
                self._check_payment(payment)
            if new.due_date is None:
                new.due_date = offset_days(now, self._payment_terms_days(new))

        self._commit(new, "document_created")
        return new.id

    @_synchronized
    def get(self, kind: DocumentKind, document_id: UUID) -> FinancialDocument | None:
        document = self._documents[kind].get(document_id)
        return copy.deepcopy(document) if document is not None else None

    @_synchronized
    def list_documents(self, kind: DocumentKind) -> list[FinancialDocument]:
        return [copy.deepcopy(d) for d in self._documents[kind].values()]

    @_synchronized
    def update(
        self,
        kind: DocumentKind,
        document_id: UUID,
        expected_version: int | None = None,
        **changes: Any,
    ) -> FinancialDocument | None:
        """Merge ``changes`` into a document.

        Totals are recomputed from the merged values. Returns the updated
        document, or None when the id is unknown or ``expected_version`` no
        longer matches.

        Raises:
            ImmutableFieldError: If a system-managed field is changed.
            UnknownFieldError: If a field does not exist on the document kind.
        """
        current = self._find(kind, document_id)
        if current is None:
            return None

        known = {f.name for f in fields(current)}
        for name in changes:
            if name in current.system_fields:
                raise ImmutableFieldError(name)
            if name not in known:
                raise UnknownFieldError(kind.value, name)

        if expected_version is not None and expected_version != current.version:
            logger.warning(
                "document_version_conflict",
                kind=kind.value,
                document_id=str(document_id),
                expected_version=expected_version,
                version=current.version,
            )
            return None

        if "line_items" in changes:
            changes["line_items"] = [as_line_item(i) for i in changes["line_items"]]
            self._check_line_items(changes["line_items"])
        if "payments" in changes:
            changes["payments"] = [as_payment(p) for p in changes["payments"]]
            for payment in changes["payments"]:
                self._check_payment(payment)
        if "time_tracking" in changes:
            changes["time_tracking"] = [
                as_time_entry(e) for e in changes["time_tracking"]
            ]

        updated = replace(copy.deepcopy(current), **changes)
        self._commit(updated, "document_updated", fields=sorted(changes))
        return copy.deepcopy(updated)

    @_synchronized
    def delete(self, kind: DocumentKind, document_id: UUID) -> bool:
        document = self._documents[kind].pop(document_id, None)
        if document is None:
            logger.warning(
                "document_not_found", kind=kind.value, document_id=str(document_id)
            )
            return False
        logger.info(
            "document_deleted",
            kind=kind.value,
            document_id=str(document_id),
            document_number=document.document_number,
        )
        if self._settings.autosave:
            self.flush()
        return True

    @_synchronized
    def duplicate(self, kind: DocumentKind, document_id: UUID) -> UUID | None:
        """Create a fresh copy of a document with its lifecycle reset.

        Customer, job, line items and notes are kept. Status, lifecycle
        stamps, provenance links and payments are cleared, and the
        kind's deadline moves to now plus its standard offset.
        """
        source = self._find(kind, document_id)
        if source is None:
            return None

        payload = copy.deepcopy(source)
        for name in payload.lifecycle_fields:
            setattr(payload, name, _field_default(type(payload), name))
        payload.line_items = [replace(item, id=uuid4()) for item in payload.line_items]

        now = self.now()
        if isinstance(payload, Estimate):
            payload.valid_until = offset_days(now, self._settings.estimate_validity_days)
        elif isinstance(payload, Invoice):
            payload.due_date = offset_days(now, self._payment_terms_days(payload))

        new_id = self.add(payload)
        logger.info(
            "document_duplicated",
            kind=kind.value,
            source_id=str(document_id),
            document_id=str(new_id),
        )
        return new_id

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    @_synchronized
    def get_estimate(self, estimate_id: UUID) -> Estimate | None:
        return self.get(DocumentKind.ESTIMATE, estimate_id)  # type: ignore[return-value]

    @_synchronized
    def get_work_order(self, work_order_id: UUID) -> WorkOrder | None:
        return self.get(DocumentKind.WORK_ORDER, work_order_id)  # type: ignore[return-value]

    @_synchronized
    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        return self.get(DocumentKind.INVOICE, invoice_id)  # type: ignore[return-value]

    @property
    def estimates(self) -> list[Estimate]:
        return self.list_documents(DocumentKind.ESTIMATE)  # type: ignore[return-value]

    @property
    def work_orders(self) -> list[WorkOrder]:
        return self.list_documents(DocumentKind.WORK_ORDER)  # type: ignore[return-value]

    @property
    def invoices(self) -> list[Invoice]:
        return self.list_documents(DocumentKind.INVOICE)  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @_synchronized
    def transition(self, kind: DocumentKind, document_id: UUID, action: str) -> bool:
        """Apply a named status action from the kind's transition table.

        Returns False when the document is missing or the current status
        does not permit the action (the action is then ignored).

        Raises:
            KeyError: If ``action`` is not defined for ``kind``.
        """
        rule = TRANSITIONS[kind][action]
        document = self._edit(kind, document_id)
        if document is None:
            return False

        current = document.status  # type: ignore[attr-defined]
        if not rule.permits(current):
            logger.info(
                "transition_ignored",
                kind=kind.value,
                document_id=str(document_id),
                action=action,
                status=current.value,
            )
            return False
        if (
            kind == DocumentKind.ESTIMATE
            and current in ESTIMATE_DECISIONS
            and rule.target in ESTIMATE_DECISIONS
        ):
            logger.warning(
                "estimate_decision_overwritten",
                document_id=str(document_id),
                previous=current.value,
                status=rule.target.value,
            )

        document.status = rule.target  # type: ignore[attr-defined]
        if rule.stamp is not None:
            setattr(document, rule.stamp, self.now())
        self._commit(
            document, "document_transitioned", action=action, status=rule.target.value
        )
        return True

    @_synchronized
    def send_estimate(self, estimate_id: UUID) -> bool:
        return self.transition(DocumentKind.ESTIMATE, estimate_id, "send")

    @_synchronized
    def mark_estimate_viewed(self, estimate_id: UUID) -> bool:
        return self.transition(DocumentKind.ESTIMATE, estimate_id, "mark_viewed")

    @_synchronized
    def accept_estimate(self, estimate_id: UUID) -> bool:
        return self.transition(DocumentKind.ESTIMATE, estimate_id, "accept")

    @_synchronized
    def decline_estimate(self, estimate_id: UUID) -> bool:
        return self.transition(DocumentKind.ESTIMATE, estimate_id, "decline")

    @_synchronized
    def schedule_work_order(
        self,
        work_order_id: UUID,
        scheduled_date: datetime,
        scheduled_time: str | None = None,
    ) -> bool:
        work_order = self._edit(DocumentKind.WORK_ORDER, work_order_id)
        if work_order is None:
            return False
        assert isinstance(work_order, WorkOrder)
        work_order.status = WorkOrderStatus.SCHEDULED
        work_order.scheduled_date = scheduled_date
        work_order.scheduled_time = scheduled_time
        self._commit(
            work_order,
            "document_transitioned",
            action="schedule",
            status=WorkOrderStatus.SCHEDULED.value,
        )
        return True

    @_synchronized
    def start_work_order(self, work_order_id: UUID) -> bool:
        return self.transition(DocumentKind.WORK_ORDER, work_order_id, "start")

    @_synchronized
    def hold_work_order(self, work_order_id: UUID) -> bool:
        return self.transition(DocumentKind.WORK_ORDER, work_order_id, "hold")

    @_synchronized
    def complete_work_order(self, work_order_id: UUID) -> bool:
        return self.transition(DocumentKind.WORK_ORDER, work_order_id, "complete")

    @_synchronized
    def cancel_work_order(self, work_order_id: UUID) -> bool:
        return self.transition(DocumentKind.WORK_ORDER, work_order_id, "cancel")

    @_synchronized
    def send_invoice(self, invoice_id: UUID) -> bool:
        """Send an invoice.

        Only a draft moves to ``sent``; resending keeps the current status
        but restamps ``sent_at``.
        """
        invoice = self._edit(DocumentKind.INVOICE, invoice_id)
        if invoice is None:
            return False
        assert isinstance(invoice, Invoice)
        if invoice.status == InvoiceStatus.DRAFT:
            invoice.status = InvoiceStatus.SENT
        invoice.sent_at = self.now()
        self._commit(
            invoice, "document_transitioned", action="send", status=invoice.status.value
        )
        return True

    @_synchronized
    def mark_invoice_viewed(self, invoice_id: UUID) -> bool:
        return self.transition(DocumentKind.INVOICE, invoice_id, "mark_viewed")

    @_synchronized
    def cancel_invoice(self, invoice_id: UUID) -> bool:
        return self.transition(DocumentKind.INVOICE, invoice_id, "cancel")

    @_synchronized
    def mark_invoice_paid(
        self, invoice_id: UUID, method: PaymentMethod = PaymentMethod.OTHER
    ) -> UUID | None:
        """Record a payment for the remaining balance.

        Returns the new payment id, or None if the invoice is missing or
        has nothing left to pay.
        """
        invoice = self._find(DocumentKind.INVOICE, invoice_id)
        if invoice is None:
            return None
        balance = invoice.totals.balance
        if balance <= 0:
            logger.info("invoice_already_paid", document_id=str(invoice_id))
            return None
        return self.add_payment(
            invoice_id,
            Payment(
                amount=balance,
                date=self.now(),
                method=method,
                notes="Marked as paid",
            ),
        )

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    @_synchronized
    def add_line_item(
        self,
        kind: DocumentKind,
        document_id: UUID,
        line_item: LineItem | Mapping[str, Any],
    ) -> UUID | None:
        document = self._edit(kind, document_id)
        if document is None:
            return None
        item = replace(as_line_item(line_item), id=uuid4())
        self._check_line_items([item])
        if not isinstance(line_item, LineItem) and "order" not in line_item:
            item.order = len(document.line_items)
        document.line_items.append(item)
        self._commit(document, "line_item_added", line_item_id=str(item.id))
        return item.id

    @_synchronized
    def update_line_item(
        self,
        kind: DocumentKind,
        document_id: UUID,
        line_item_id: UUID,
        **changes: Any,
    ) -> bool:
        document = self._edit(kind, document_id)
        if document is None:
            return False
        item = document.find_line_item(line_item_id)
        if item is None:
            logger.warning(
                "line_item_not_found",
                document_id=str(document_id),
                line_item_id=str(line_item_id),
            )
            return False

        if "rate" not in changes and "unit_price" in changes:
            changes["rate"] = changes["unit_price"]
        for key in _DERIVED_LINE_ITEM_KEYS | {"id"}:
            changes.pop(key, None)
        updated = replace(item, **changes)
        self._check_line_items([updated])
        document.line_items = [
            updated if i.id == line_item_id else i for i in document.line_items
        ]
        self._commit(document, "line_item_updated", line_item_id=str(line_item_id))
        return True

    @_synchronized
    def delete_line_item(
        self, kind: DocumentKind, document_id: UUID, line_item_id: UUID
    ) -> bool:
        document = self._edit(kind, document_id)
        if document is None:
            return False
        remaining = [i for i in document.line_items if i.id != line_item_id]
        if len(remaining) == len(document.line_items):
            logger.warning(
                "line_item_not_found",
                document_id=str(document_id),
                line_item_id=str(line_item_id),
            )
            return False
        document.line_items = remaining
        self._commit(document, "line_item_deleted", line_item_id=str(line_item_id))
        return True

    @_synchronized
    def reorder_line_items(
        self,
        kind: DocumentKind,
        document_id: UUID,
        line_items: Iterable[LineItem | Mapping[str, Any]],
    ) -> bool:
        """Replace the line items, numbering ``order`` by position."""
        document = self._edit(kind, document_id)
        if document is None:
            return False
        reordered = [as_line_item(item) for item in line_items]
        self._check_line_items(reordered)
        for position, item in enumerate(reordered):
            item.order = position
        document.line_items = reordered
        self._commit(document, "line_items_reordered", count=len(reordered))
        return True

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    @_synchronized
    def add_payment(
        self, invoice_id: UUID, payment: Payment | Mapping[str, Any]
    ) -> UUID | None:
        invoice = self._edit(DocumentKind.INVOICE, invoice_id)
        if invoice is None:
            return None
        assert isinstance(invoice, Invoice)
        new_payment = replace(as_payment(payment), id=uuid4())
        self._check_payment(new_payment)
        invoice.payments.append(new_payment)
        self._commit(
            invoice,
            "payment_added",
            payment_id=str(new_payment.id),
            amount=str(new_payment.amount),
        )
        return new_payment.id

    @_synchronized
    def update_payment(self, invoice_id: UUID, payment_id: UUID, **changes: Any) -> bool:
        invoice = self._edit(DocumentKind.INVOICE, invoice_id)
        if invoice is None:
            return False
        assert isinstance(invoice, Invoice)
        payment = invoice.find_payment(payment_id)
        if payment is None:
            logger.warning(
                "payment_not_found",
                document_id=str(invoice_id),
                payment_id=str(payment_id),
            )
            return False
        changes.pop("id", None)
        updated = replace(payment, **changes)
        self._check_payment(updated)
        invoice.payments = [
            updated if p.id == payment_id else p for p in invoice.payments
        ]
        self._commit(invoice, "payment_updated", payment_id=str(payment_id))
        return True

    @_synchronized
    def delete_payment(self, invoice_id: UUID, payment_id: UUID) -> bool:
        invoice = self._edit(DocumentKind.INVOICE, invoice_id)
        if invoice is None:
            return False
        assert isinstance(invoice, Invoice)
        remaining = [p for p in invoice.payments if p.id != payment_id]
        if len(remaining) == len(invoice.payments):
            logger.warning(
                "payment_not_found",
                document_id=str(invoice_id),
                payment_id=str(payment_id),
            )
            return False
        invoice.payments = remaining
        self._commit(invoice, "payment_deleted", payment_id=str(payment_id))
        return True

    # ------------------------------------------------------------------
    # Work order time tracking and photos
    # ------------------------------------------------------------------

    @_synchronized
    def add_time_entry(
        self, work_order_id: UUID, entry: TimeEntry | Mapping[str, Any]
    ) -> UUID | None:
        work_order = self._edit(DocumentKind.WORK_ORDER, work_order_id)
        if work_order is None:
            return None
        assert isinstance(work_order, WorkOrder)
        new_entry = replace(as_time_entry(entry), id=uuid4())
        work_order.time_tracking.append(new_entry)
        self._commit(work_order, "time_entry_added", time_entry_id=str(new_entry.id))
        return new_entry.id

    @_synchronized
    def update_time_entry(
        self, work_order_id: UUID, time_entry_id: UUID, **changes: Any
    ) -> bool:
        work_order = self._edit(DocumentKind.WORK_ORDER, work_order_id)
        if work_order is None:
            return False
        assert isinstance(work_order, WorkOrder)
        if not any(e.id == time_entry_id for e in work_order.time_tracking):
            logger.warning(
                "time_entry_not_found",
                document_id=str(work_order_id),
                time_entry_id=str(time_entry_id),
            )
            return False
        changes.pop("id", None)
        work_order.time_tracking = [
            replace(e, **changes) if e.id == time_entry_id else e
            for e in work_order.time_tracking
        ]
        self._commit(
            work_order, "time_entry_updated", time_entry_id=str(time_entry_id)
        )
        return True

    @_synchronized
    def delete_time_entry(self, work_order_id: UUID, time_entry_id: UUID) -> bool:
        work_order = self._edit(DocumentKind.WORK_ORDER, work_order_id)
        if work_order is None:
            return False
        assert isinstance(work_order, WorkOrder)
        remaining = [e for e in work_order.time_tracking if e.id != time_entry_id]
        if len(remaining) == len(work_order.time_tracking):
            logger.warning(
                "time_entry_not_found",
                document_id=str(work_order_id),
                time_entry_id=str(time_entry_id),
            )
            return False
        work_order.time_tracking = remaining
        self._commit(
            work_order, "time_entry_deleted", time_entry_id=str(time_entry_id)
        )
        return True

    @_synchronized
    def add_photo(self, work_order_id: UUID, photo_url: str) -> bool:
        work_order = self._edit(DocumentKind.WORK_ORDER, work_order_id)
        if work_order is None:
            return False
        assert isinstance(work_order, WorkOrder)
        work_order.photos.append(photo_url)
        self._commit(work_order, "photo_added", photo_url=photo_url)
        return True

    @_synchronized
    def remove_photo(self, work_order_id: UUID, photo_url: str) -> bool:
        work_order = self._edit(DocumentKind.WORK_ORDER, work_order_id)
        if work_order is None:
            return False
        assert isinstance(work_order, WorkOrder)
        if photo_url not in work_order.photos:
            return False
        work_order.photos = [p for p in work_order.photos if p != photo_url]
        self._commit(work_order, "photo_removed", photo_url=photo_url)
        return True


__all__ = ["DocumentStore", "as_line_item", "as_payment", "as_time_entry"]

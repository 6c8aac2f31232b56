"""Status state machines for financial documents.

Explicit actions (send, accept, start, cancel, ...) are described by a
transition table per document kind. Two statuses are never set by an action:

- An estimate reads as ``expired`` once ``valid_until`` has passed without an
  accept/decline decision. This is a read-time projection; the stored status
  is left untouched.
- Invoice ``partial``, ``paid`` and ``overdue`` are derived from payment and
  due-date facts each time the invoice is written.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from fieldwork_billing.domain.documents import Estimate, Invoice
from fieldwork_billing.domain.totals import Totals
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    EstimateStatus,
    InvoiceStatus,
    WorkOrderStatus,
)


@dataclass(frozen=True)
class Transition:
    target: Enum
    allowed_from: frozenset[Enum] | None = None
    stamp: str | None = None

    def permits(self, current: Enum) -> bool:
        return self.allowed_from is None or current in self.allowed_from


ESTIMATE_TRANSITIONS: dict[str, Transition] = {
    "send": Transition(EstimateStatus.SENT, stamp="sent_at"),
    "mark_viewed": Transition(
        EstimateStatus.VIEWED,
        allowed_from=frozenset({EstimateStatus.SENT}),
        stamp="viewed_at",
    ),
    "accept": Transition(EstimateStatus.ACCEPTED, stamp="accepted_at"),
    "decline": Transition(EstimateStatus.DECLINED, stamp="declined_at"),
}

WORK_ORDER_TRANSITIONS: dict[str, Transition] = {
    "schedule": Transition(WorkOrderStatus.SCHEDULED),
    "start": Transition(WorkOrderStatus.IN_PROGRESS, stamp="started_at"),
    "hold": Transition(WorkOrderStatus.ON_HOLD),
    "complete": Transition(WorkOrderStatus.COMPLETED, stamp="completed_at"),
    "cancel": Transition(WorkOrderStatus.CANCELLED),
}

INVOICE_TRANSITIONS: dict[str, Transition] = {
    "send": Transition(
        InvoiceStatus.SENT,
        allowed_from=frozenset({InvoiceStatus.DRAFT}),
        stamp="sent_at",
    ),
    "mark_viewed": Transition(
        InvoiceStatus.VIEWED,
        allowed_from=frozenset({InvoiceStatus.SENT}),
        stamp="viewed_at",
    ),
    "cancel": Transition(InvoiceStatus.CANCELLED),
}

TRANSITIONS: dict[DocumentKind, dict[str, Transition]] = {
    DocumentKind.ESTIMATE: ESTIMATE_TRANSITIONS,
    DocumentKind.WORK_ORDER: WORK_ORDER_TRANSITIONS,
    DocumentKind.INVOICE: INVOICE_TRANSITIONS,
}

ESTIMATE_DECISIONS = frozenset({EstimateStatus.ACCEPTED, EstimateStatus.DECLINED})

# Invoice statuses set by an explicit action; the rest are derived.
EXPLICIT_INVOICE_STATUSES = frozenset(
    {
        InvoiceStatus.DRAFT,
        InvoiceStatus.SENT,
        InvoiceStatus.VIEWED,
        InvoiceStatus.CANCELLED,
    }
)


def is_estimate_expired(estimate: Estimate, now: datetime) -> bool:
    return (
        estimate.valid_until is not None
        and now > estimate.valid_until
        and estimate.status not in ESTIMATE_DECISIONS
    )


def effective_estimate_status(estimate: Estimate, now: datetime) -> EstimateStatus:
    if is_estimate_expired(estimate, now):
        return EstimateStatus.EXPIRED
    return estimate.status


def explicit_invoice_status(invoice: Invoice) -> InvoiceStatus:
    """Return the last explicitly set status of an invoice.

    Derived statuses fall back to what the lifecycle stamps imply, so an
    invoice that stops being paid returns to viewed, sent or draft.
    """
    if invoice.status in EXPLICIT_INVOICE_STATUSES:
        return invoice.status
    if invoice.viewed_at is not None:
        return InvoiceStatus.VIEWED
    if invoice.sent_at is not None:
        return InvoiceStatus.SENT
    return InvoiceStatus.DRAFT


def derive_invoice_status(
    invoice: Invoice, totals: Totals, now: datetime
) -> InvoiceStatus:
    """Status implied by payments and the due date.

    Checked in order: cancelled, paid, partial, draft, overdue. Payment facts
    win over the due date, so a partly paid invoice past its due date reads
    ``partial``; ``overdue`` means past due with nothing paid. A draft is
    never overdue. Otherwise the last explicit status (sent or viewed) holds.
    """
    base = explicit_invoice_status(invoice)
    if base == InvoiceStatus.CANCELLED:
        return InvoiceStatus.CANCELLED
    if totals.is_fully_paid:
        return InvoiceStatus.PAID
    if totals.is_partially_paid:
        return InvoiceStatus.PARTIAL
    if base == InvoiceStatus.DRAFT:
        return InvoiceStatus.DRAFT
    if (
        invoice.due_date is not None
        and invoice.due_date < now
        and totals.balance > 0
    ):
        return InvoiceStatus.OVERDUE
    return base


__all__ = [
    "ESTIMATE_DECISIONS",
    "ESTIMATE_TRANSITIONS",
    "EXPLICIT_INVOICE_STATUSES",
    "INVOICE_TRANSITIONS",
    "TRANSITIONS",
    "WORK_ORDER_TRANSITIONS",
    "Transition",
    "derive_invoice_status",
    "effective_estimate_status",
    "explicit_invoice_status",
    "is_estimate_expired",
]

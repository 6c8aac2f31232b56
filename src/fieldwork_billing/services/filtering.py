"""Filtered, sorted read-only views over document collections.

Views are built from copies: the estimate ``expired`` label and the invoice
status derived at read time never reach stored documents.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, TypeVar

from fieldwork_billing.domain.documents import (
    Estimate,
    FinancialDocument,
    Invoice,
    WorkOrder,
)
from fieldwork_billing.domain.status import (
    derive_invoice_status,
    effective_estimate_status,
)
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    EstimateStatus,
    InvoiceStatus,
    WorkOrderPriority,
    WorkOrderStatus,
)

D = TypeVar("D", bound=FinancialDocument)

SortDirection = Literal["asc", "desc"]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Kind-specific field used when sorting by "due_date".
_DUE_LIKE_FIELDS = {
    DocumentKind.ESTIMATE: "valid_until",
    DocumentKind.WORK_ORDER: "scheduled_date",
    DocumentKind.INVOICE: "due_date",
}


@dataclass
class EstimateFilters:
    search: str | None = None
    status: list[EstimateStatus] = field(default_factory=list)
    customer_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None


@dataclass
class WorkOrderFilters:
    search: str | None = None
    status: list[WorkOrderStatus] = field(default_factory=list)
    customer_id: str | None = None
    assigned_to: list[str] = field(default_factory=list)
    priority: list[WorkOrderPriority] = field(default_factory=list)
    date_from: datetime | None = None
    date_to: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None


@dataclass
class InvoiceFilters:
    search: str | None = None
    status: list[InvoiceStatus] = field(default_factory=list)
    customer_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    overdue: bool = False


@dataclass(frozen=True)
class DocumentSort:
    field: str = "created_at"
    direction: SortDirection = "desc"


def normalize_field_name(name: str) -> str:
    """Map ``dueDate`` style names onto the dataclass field names."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _matches_search(document: FinancialDocument, search: str | None) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(
        needle in (value or "").lower()
        for value in (
            document.document_number,
            document.customer_name,
            document.customer_email,
        )
    )


def _in_range(
    value: Any, low: Any | None, high: Any | None, *, missing_passes: bool = False
) -> bool:
    if low is None and high is None:
        return True
    if value is None:
        return missing_passes
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _common_match(
    document: FinancialDocument,
    search: str | None,
    statuses: Sequence[Enum],
    customer_id: str | None,
    min_amount: Decimal | None,
    max_amount: Decimal | None,
) -> bool:
    if not _matches_search(document, search):
        return False
    if statuses and document.status not in statuses:  # type: ignore[attr-defined]
        return False
    if customer_id and document.customer_id != customer_id:
        return False
    return _in_range(document.totals.total, min_amount, max_amount)


def project_estimate(estimate: Estimate, now: datetime) -> Estimate:
    view = copy.deepcopy(estimate)
    view.status = effective_estimate_status(estimate, now)
    return view


def project_invoice(invoice: Invoice, now: datetime) -> Invoice:
    view = copy.deepcopy(invoice)
    view.status = derive_invoice_status(invoice, invoice.totals, now)
    return view


def filter_estimates(
    estimates: Iterable[Estimate],
    filters: EstimateFilters | None = None,
    now: datetime | None = None,
) -> list[Estimate]:
    """Filter estimates; past-validity estimates are reported as expired.

    The expiry projection is applied before the status predicate so that
    filtering on ``expired`` returns them.
    """
    filters = filters or EstimateFilters()
    now = now or datetime.now(UTC)
    views = [project_estimate(e, now) for e in estimates]
    return [
        e
        for e in views
        if _common_match(
            e,
            filters.search,
            [EstimateStatus(s) for s in filters.status],
            filters.customer_id,
            filters.min_amount,
            filters.max_amount,
        )
        and _in_range(e.created_at, filters.date_from, filters.date_to)
    ]


def filter_work_orders(
    work_orders: Iterable[WorkOrder], filters: WorkOrderFilters | None = None
) -> list[WorkOrder]:
    """Filter work orders; the date range applies to ``scheduled_date``."""
    filters = filters or WorkOrderFilters()
    assignees = set(filters.assigned_to)
    priorities = {WorkOrderPriority(p) for p in filters.priority}
    result = []
    for wo in work_orders:
        if not _common_match(
            wo,
            filters.search,
            [WorkOrderStatus(s) for s in filters.status],
            filters.customer_id,
            filters.min_amount,
            filters.max_amount,
        ):
            continue
        if assignees and not assignees.intersection(wo.assigned_to):
            continue
        if priorities and wo.priority not in priorities:
            continue
        if not _in_range(wo.scheduled_date, filters.date_from, filters.date_to):
            continue
        result.append(copy.deepcopy(wo))
    return result


def filter_invoices(
    invoices: Iterable[Invoice],
    filters: InvoiceFilters | None = None,
    now: datetime | None = None,
) -> list[Invoice]:
    """Filter invoices against their status as derived at ``now``."""
    filters = filters or InvoiceFilters()
    now = now or datetime.now(UTC)
    views = [project_invoice(i, now) for i in invoices]
    return [
        inv
        for inv in views
        if _common_match(
            inv,
            filters.search,
            [InvoiceStatus(s) for s in filters.status],
            filters.customer_id,
            filters.min_amount,
            filters.max_amount,
        )
        and _in_range(inv.created_at, filters.date_from, filters.date_to)
        and (not filters.overdue or inv.status == InvoiceStatus.OVERDUE)
    ]


def _sort_value(document: FinancialDocument, name: str) -> Any:
    if name == "total":
        return document.totals.total
    value = getattr(document, name)
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value.lower()
    return value


def sort_documents(
    documents: Sequence[D], sort: DocumentSort | None = None
) -> list[D]:
    """Sort documents by a field; unknown fields keep the input order.

    ``total`` sorts by ``totals.total`` and ``due_date`` by the kind's
    deadline (valid_until, scheduled_date or due_date). Strings compare
    case-insensitively. Documents missing the value sort first ascending.
    """
    sort = sort or DocumentSort()
    items = list(documents)
    if not items:
        return items

    name = normalize_field_name(sort.field)
    if name == "due_date":
        name = _DUE_LIKE_FIELDS[items[0].kind]
    if name != "total" and not all(hasattr(d, name) for d in items):
        return items

    def key(document: D) -> tuple[bool, Any]:
        value = _sort_value(document, name)
        return (value is not None, value)

    try:
        return sorted(items, key=key, reverse=sort.direction == "desc")
    except TypeError:
        # Values of incomparable types (lists, mixed) leave the order alone.
        return items


__all__ = [
    "DocumentSort",
    "EstimateFilters",
    "InvoiceFilters",
    "WorkOrderFilters",
    "filter_estimates",
    "filter_invoices",
    "filter_work_orders",
    "normalize_field_name",
    "project_estimate",
    "project_invoice",
    "sort_documents",
]

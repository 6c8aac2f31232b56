"""Summary metrics per document kind, recomputed on every call."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from fieldwork_billing.domain.documents import Estimate, Invoice, WorkOrder
from fieldwork_billing.domain.status import (
    derive_invoice_status,
    effective_estimate_status,
)
from fieldwork_billing.domain.value_objects import (
    EstimateStatus,
    InvoiceStatus,
    WorkOrderStatus,
    round_cents,
)

ZERO = Decimal("0.00")


def _ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def _money_sum(values: Iterable[Decimal]) -> Decimal:
    return round_cents(sum(values, Decimal("0")))


@dataclass(frozen=True)
class EstimateStats:
    total: int = 0
    draft: int = 0
    sent: int = 0
    accepted: int = 0
    declined: int = 0
    expired: int = 0
    total_value: Decimal = ZERO
    average_value: Decimal = ZERO
    acceptance_rate: float = 0.0
    by_status: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkOrderStats:
    total: int = 0
    draft: int = 0
    scheduled: int = 0
    in_progress: int = 0
    on_hold: int = 0
    completed: int = 0
    cancelled: int = 0
    total_value: Decimal = ZERO
    average_completion_hours: float = 0.0
    total_hours_logged: Decimal = Decimal("0")
    by_status: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class InvoiceStats:
    total: int = 0
    draft: int = 0
    sent: int = 0
    partial: int = 0
    paid: int = 0
    overdue: int = 0
    cancelled: int = 0
    total_value: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    average_days_to_pay: float = 0.0
    by_status: dict[str, int] = field(default_factory=dict)


def estimate_stats(
    estimates: Iterable[Estimate], now: datetime | None = None
) -> EstimateStats:
    """Aggregate estimates using their effective (expiry-aware) status.

    ``sent`` counts both sent and viewed estimates. The acceptance rate is
    accepted / (sent + viewed + accepted + declined), as a fraction.
    """
    now = now or datetime.now(UTC)
    items = list(estimates)
    counts = Counter(effective_estimate_status(e, now) for e in items)

    sent = counts[EstimateStatus.SENT] + counts[EstimateStatus.VIEWED]
    accepted = counts[EstimateStatus.ACCEPTED]
    declined = counts[EstimateStatus.DECLINED]
    total_value = _money_sum(e.totals.total for e in items)

    return EstimateStats(
        total=len(items),
        draft=counts[EstimateStatus.DRAFT],
        sent=sent,
        accepted=accepted,
        declined=declined,
        expired=counts[EstimateStatus.EXPIRED],
        total_value=total_value,
        average_value=(
            round_cents(total_value / len(items)) if items else ZERO
        ),
        acceptance_rate=_ratio(accepted, sent + accepted + declined),
        by_status={status.value: n for status, n in counts.items()},
    )


def work_order_stats(work_orders: Iterable[WorkOrder]) -> WorkOrderStats:
    """Aggregate work orders.

    Average completion time is measured in hours from ``started_at`` to
    ``completed_at`` over completed orders that carry both stamps.
    """
    items = list(work_orders)
    counts = Counter(wo.status for wo in items)

    durations = [
        (wo.completed_at - wo.started_at).total_seconds() / 3600
        for wo in items
        if wo.status == WorkOrderStatus.COMPLETED
        and wo.started_at is not None
        and wo.completed_at is not None
    ]

    return WorkOrderStats(
        total=len(items),
        draft=counts[WorkOrderStatus.DRAFT],
        scheduled=counts[WorkOrderStatus.SCHEDULED],
        in_progress=counts[WorkOrderStatus.IN_PROGRESS],
        on_hold=counts[WorkOrderStatus.ON_HOLD],
        completed=counts[WorkOrderStatus.COMPLETED],
        cancelled=counts[WorkOrderStatus.CANCELLED],
        total_value=_money_sum(wo.totals.total for wo in items),
        average_completion_hours=_ratio(sum(durations), len(durations)),
        total_hours_logged=sum((wo.total_hours for wo in items), Decimal("0")),
        by_status={status.value: n for status, n in counts.items()},
    )


def invoice_stats(
    invoices: Iterable[Invoice], now: datetime | None = None
) -> InvoiceStats:
    """Aggregate invoices using their status derived at ``now``.

    Average days to pay runs from ``created_at`` to ``paid_at`` over paid
    invoices. Outstanding is the sum of balances of non-cancelled invoices.
    """
    now = now or datetime.now(UTC)
    items = list(invoices)
    statuses = [derive_invoice_status(i, i.totals, now) for i in items]
    counts = Counter(statuses)

    days_to_pay = [
        (inv.paid_at - inv.created_at).total_seconds() / 86400
        for inv, status in zip(items, statuses)
        if status == InvoiceStatus.PAID and inv.paid_at is not None
    ]

    return InvoiceStats(
        total=len(items),
        draft=counts[InvoiceStatus.DRAFT],
        sent=counts[InvoiceStatus.SENT] + counts[InvoiceStatus.VIEWED],
        partial=counts[InvoiceStatus.PARTIAL],
        paid=counts[InvoiceStatus.PAID],
        overdue=counts[InvoiceStatus.OVERDUE],
        cancelled=counts[InvoiceStatus.CANCELLED],
        total_value=_money_sum(i.totals.total for i in items),
        total_paid=_money_sum(i.totals.amount_paid for i in items),
        total_outstanding=_money_sum(
            i.totals.balance
            for i, status in zip(items, statuses)
            if status != InvoiceStatus.CANCELLED
        ),
        average_days_to_pay=_ratio(sum(days_to_pay), len(days_to_pay)),
        by_status={status.value: n for status, n in counts.items()},
    )


__all__ = [
    "EstimateStats",
    "InvoiceStats",
    "WorkOrderStats",
    "estimate_stats",
    "invoice_stats",
    "work_order_stats",
]

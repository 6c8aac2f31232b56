from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar
from uuid import UUID, uuid4

from fieldwork_billing.domain.totals import Totals, calculate_totals, line_item_amount
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    EstimateStatus,
    InvoiceStatus,
    LineItemType,
    PaymentMethod,
    WorkOrderPriority,
    WorkOrderStatus,
    to_decimal,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class LineItem:
    description: str
    quantity: Decimal
    rate: Decimal
    type: LineItemType = LineItemType.MATERIAL
    taxable: bool = True
    order: int = 0
    id: UUID = field(default_factory=uuid4)
    part_number: str | None = None
    material_source: str | None = None
    labor_type: str | None = None
    subcontractor_name: str | None = None

    def __post_init__(self) -> None:
        self.quantity = to_decimal(self.quantity)
        self.rate = to_decimal(self.rate)
        self.type = LineItemType(self.type)

    @property
    def amount(self) -> Decimal:
        return line_item_amount(self.quantity, self.rate)

    @property
    def unit_price(self) -> Decimal:
        return self.rate


@dataclass
class Payment:
    amount: Decimal
    date: datetime = field(default_factory=_utc_now)
    method: PaymentMethod = PaymentMethod.OTHER
    id: UUID = field(default_factory=uuid4)
    reference: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        self.amount = to_decimal(self.amount)
        self.method = PaymentMethod(self.method)


@dataclass
class TimeEntry:
    start_time: datetime
    id: UUID = field(default_factory=uuid4)
    end_time: datetime | None = None
    user_id: str | None = None
    user_name: str = ""
    notes: str | None = None

    @property
    def is_running(self) -> bool:
        return self.end_time is None

    @property
    def hours(self) -> Decimal:
        if self.end_time is None:
            return Decimal("0")
        seconds = Decimal(str((self.end_time - self.start_time).total_seconds()))
        return (seconds / Decimal("3600")).quantize(Decimal("0.01"))


@dataclass
class FinancialDocument:
    """Fields shared by estimates, work orders and invoices.

    ``totals`` is owned by the document store and recomputed on every write
    that touches line items, tax rate or payments. ``version`` increments on
    every write.
    """

    customer_id: str
    customer_name: str
    line_items: list[LineItem] = field(default_factory=list)
    tax_rate: Decimal = Decimal("0")
    id: UUID = field(default_factory=uuid4)
    document_number: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    service_address: str = ""
    job_id: str | None = None
    job_name: str | None = None
    date: datetime = field(default_factory=_utc_now)
    notes: str | None = None
    created_by: str | None = None
    totals: Totals = field(default_factory=Totals)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    version: int = 0

    kind: ClassVar[DocumentKind]
    initial_status: ClassVar[Enum]
    # Fields cleared when the document is duplicated.
    lifecycle_fields: ClassVar[tuple[str, ...]] = ()
    # Forward-looking deadline reset to now + offset on duplicate.
    deadline_field: ClassVar[str | None] = None
    system_fields: ClassVar[frozenset[str]] = frozenset(
        {"id", "document_number", "created_at", "updated_at", "totals", "version"}
    )

    def __post_init__(self) -> None:
        self.tax_rate = to_decimal(self.tax_rate)

    def compute_totals(self) -> Totals:
        return calculate_totals(self.line_items, self.tax_rate)

    def find_line_item(self, line_item_id: UUID) -> LineItem | None:
        for item in self.line_items:
            if item.id == line_item_id:
                return item
        return None

    @property
    def provenance(self) -> dict[str, UUID]:
        links: dict[str, UUID] = {}
        for name in (
            "estimate_id",
            "work_order_id",
            "converted_to_work_order_id",
            "converted_to_invoice_id",
        ):
            value = getattr(self, name, None)
            if value is not None:
                links[name] = value
        return links


@dataclass
class Estimate(FinancialDocument):
    status: EstimateStatus = EstimateStatus.DRAFT
    valid_until: datetime | None = None
    billing_address: str | None = None
    terms_and_conditions: str | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    converted_to_work_order_id: UUID | None = None
    converted_to_invoice_id: UUID | None = None

    kind: ClassVar[DocumentKind] = DocumentKind.ESTIMATE
    initial_status: ClassVar[EstimateStatus] = EstimateStatus.DRAFT
    lifecycle_fields: ClassVar[tuple[str, ...]] = (
        "sent_at",
        "viewed_at",
        "accepted_at",
        "declined_at",
        "converted_to_work_order_id",
        "converted_to_invoice_id",
    )
    deadline_field: ClassVar[str | None] = "valid_until"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.status = EstimateStatus(self.status)


@dataclass
class WorkOrder(FinancialDocument):
    status: WorkOrderStatus = WorkOrderStatus.DRAFT
    estimate_id: UUID | None = None
    scheduled_date: datetime | None = None
    scheduled_time: str | None = None
    assigned_to: list[str] = field(default_factory=list)
    priority: WorkOrderPriority = WorkOrderPriority.NORMAL
    internal_notes: str | None = None
    customer_notes: str | None = None
    instructions: str | None = None
    photos: list[str] = field(default_factory=list)
    time_tracking: list[TimeEntry] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    converted_to_invoice_id: UUID | None = None

    kind: ClassVar[DocumentKind] = DocumentKind.WORK_ORDER
    initial_status: ClassVar[WorkOrderStatus] = WorkOrderStatus.DRAFT
    lifecycle_fields: ClassVar[tuple[str, ...]] = (
        "estimate_id",
        "scheduled_date",
        "scheduled_time",
        "started_at",
        "completed_at",
        "converted_to_invoice_id",
        "photos",
        "time_tracking",
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        self.status = WorkOrderStatus(self.status)
        self.priority = WorkOrderPriority(self.priority)

    @property
    def total_hours(self) -> Decimal:
        return sum((entry.hours for entry in self.time_tracking), Decimal("0"))


@dataclass
class Invoice(FinancialDocument):
    status: InvoiceStatus = InvoiceStatus.DRAFT
    payments: list[Payment] = field(default_factory=list)
    due_date: datetime | None = None
    payment_terms: str = "Net 30"
    work_order_id: UUID | None = None
    estimate_id: UUID | None = None
    billing_address: str | None = None
    terms_and_conditions: str | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    paid_at: datetime | None = None

    kind: ClassVar[DocumentKind] = DocumentKind.INVOICE
    initial_status: ClassVar[InvoiceStatus] = InvoiceStatus.DRAFT
    lifecycle_fields: ClassVar[tuple[str, ...]] = (
        "payments",
        "sent_at",
        "viewed_at",
        "paid_at",
        "work_order_id",
        "estimate_id",
    )
    deadline_field: ClassVar[str | None] = "due_date"

    def __post_init__(self) -> None:
        super().__post_init__()
        self.status = InvoiceStatus(self.status)

    def compute_totals(self) -> Totals:
        return calculate_totals(self.line_items, self.tax_rate, self.payments)

    def find_payment(self, payment_id: UUID) -> Payment | None:
        for payment in self.payments:
            if payment.id == payment_id:
                return payment
        return None


DOCUMENT_TYPES: dict[DocumentKind, type[FinancialDocument]] = {
    DocumentKind.ESTIMATE: Estimate,
    DocumentKind.WORK_ORDER: WorkOrder,
    DocumentKind.INVOICE: Invoice,
}


__all__ = [
    "DOCUMENT_TYPES",
    "Estimate",
    "FinancialDocument",
    "Invoice",
    "LineItem",
    "Payment",
    "TimeEntry",
    "WorkOrder",
]

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENTS = Decimal("0.01")


class DocumentKind(str, Enum):
    ESTIMATE = "estimate"
    WORK_ORDER = "work_order"
    INVOICE = "invoice"

    @property
    def number_prefix(self) -> str:
        return _NUMBER_PREFIXES[self]


_NUMBER_PREFIXES = {
    DocumentKind.ESTIMATE: "EST",
    DocumentKind.WORK_ORDER: "WO",
    DocumentKind.INVOICE: "INV",
}


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class WorkOrderStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class LineItemType(str, Enum):
    MATERIAL = "material"
    LABOR = "labor"
    EQUIPMENT = "equipment"
    SUBCONTRACTOR = "subcontractor"
    PERMIT = "permit"

    @property
    def taxable_by_default(self) -> bool:
        return self not in (LineItemType.LABOR, LineItemType.PERMIT)


class PaymentMethod(str, Enum):
    CASH = "cash"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    ACH = "ach"
    WIRE = "wire"
    OTHER = "other"


class WorkOrderPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


__all__ = [
    "CENTS",
    "DocumentKind",
    "EstimateStatus",
    "InvoiceStatus",
    "LineItemType",
    "PaymentMethod",
    "WorkOrderPriority",
    "WorkOrderStatus",
    "round_cents",
    "to_decimal",
]

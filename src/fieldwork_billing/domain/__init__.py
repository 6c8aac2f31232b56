from fieldwork_billing.domain.documents import (
    DOCUMENT_TYPES,
    Estimate,
    FinancialDocument,
    Invoice,
    LineItem,
    Payment,
    TimeEntry,
    WorkOrder,
)
from fieldwork_billing.domain.numbering import generate_number
from fieldwork_billing.domain.totals import Totals, calculate_totals
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    EstimateStatus,
    InvoiceStatus,
    LineItemType,
    PaymentMethod,
    WorkOrderPriority,
    WorkOrderStatus,
)

__all__ = [
    "DOCUMENT_TYPES",
    "DocumentKind",
    "Estimate",
    "EstimateStatus",
    "FinancialDocument",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    "LineItemType",
    "Payment",
    "PaymentMethod",
    "TimeEntry",
    "Totals",
    "WorkOrder",
    "WorkOrderPriority",
    "WorkOrderStatus",
    "calculate_totals",
    "generate_number",
]

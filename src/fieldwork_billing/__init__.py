from fieldwork_billing.domain.documents import (
    Estimate,
    FinancialDocument,
    Invoice,
    LineItem,
    Payment,
    TimeEntry,
    WorkOrder,
)
from fieldwork_billing.domain.totals import Totals
from fieldwork_billing.domain.value_objects import DocumentKind

__all__ = [
    "DocumentKind",
    "Estimate",
    "FinancialDocument",
    "Invoice",
    "LineItem",
    "Payment",
    "TimeEntry",
    "Totals",
    "WorkOrder",
]

__version__ = "0.1.0"

from fieldwork_billing.services.conversion import ConversionService
from fieldwork_billing.services.directory import prefill_from_directory
from fieldwork_billing.services.document_store import DocumentStore
from fieldwork_billing.services.export import (
    export_estimates_csv,
    export_invoices_csv,
    export_work_orders_csv,
)
from fieldwork_billing.services.filtering import (
    DocumentSort,
    EstimateFilters,
    InvoiceFilters,
    WorkOrderFilters,
    filter_estimates,
    filter_invoices,
    filter_work_orders,
    sort_documents,
)
from fieldwork_billing.services.stats import (
    EstimateStats,
    InvoiceStats,
    WorkOrderStats,
    estimate_stats,
    invoice_stats,
    work_order_stats,
)

__all__ = [
    "ConversionService",
    "DocumentSort",
    "DocumentStore",
    "EstimateFilters",
    "EstimateStats",
    "InvoiceFilters",
    "InvoiceStats",
    "WorkOrderFilters",
    "WorkOrderStats",
    "estimate_stats",
    "export_estimates_csv",
    "export_invoices_csv",
    "export_work_orders_csv",
    "filter_estimates",
    "filter_invoices",
    "filter_work_orders",
    "invoice_stats",
    "prefill_from_directory",
    "sort_documents",
    "work_order_stats",
]

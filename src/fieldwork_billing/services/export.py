"""CSV export of document views."""

import csv
from collections.abc import Iterable, Sequence
from datetime import datetime
from io import StringIO
from pathlib import Path

from fieldwork_billing.domain.documents import Estimate, Invoice, WorkOrder

ESTIMATE_HEADERS = [
    "Document Number",
    "Customer",
    "Status",
    "Date",
    "Valid Until",
    "Subtotal",
    "Tax",
    "Total",
]

WORK_ORDER_HEADERS = [
    "Document Number",
    "Customer",
    "Status",
    "Priority",
    "Scheduled Date",
    "Assigned To",
    "Total",
]

INVOICE_HEADERS = [
    "Invoice Number",
    "Customer",
    "Status",
    "Issue Date",
    "Due Date",
    "Total",
    "Paid",
    "Balance",
]


def _date(value: datetime | None) -> str:
    return value.date().isoformat() if value is not None else ""


def _write_csv(
    headers: Sequence[str],
    rows: Iterable[Sequence[str]],
    output_path: str | Path | None,
) -> str:
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)

    csv_content = output.getvalue()
    if output_path:
        with open(output_path, "w", newline="") as f:
            f.write(csv_content)
    return csv_content


def export_estimates_csv(
    estimates: Iterable[Estimate], output_path: str | Path | None = None
) -> str:
    """Export estimates to CSV.

    Pass filtered views to export expired estimates with their read-time
    status.

    Returns:
        CSV content as string
    """
    rows = (
        [
            est.document_number,
            est.customer_name,
            est.status.value,
            _date(est.created_at),
            _date(est.valid_until),
            str(est.totals.subtotal),
            str(est.totals.tax_amount),
            str(est.totals.total),
        ]
        for est in estimates
    )
    return _write_csv(ESTIMATE_HEADERS, rows, output_path)


def export_work_orders_csv(
    work_orders: Iterable[WorkOrder], output_path: str | Path | None = None
) -> str:
    rows = (
        [
            wo.document_number,
            wo.customer_name,
            wo.status.value,
            wo.priority.value,
            _date(wo.scheduled_date),
            "; ".join(wo.assigned_to),
            str(wo.totals.total),
        ]
        for wo in work_orders
    )
    return _write_csv(WORK_ORDER_HEADERS, rows, output_path)


def export_invoices_csv(
    invoices: Iterable[Invoice], output_path: str | Path | None = None
) -> str:
    rows = (
        [
            inv.document_number,
            inv.customer_name,
            inv.status.value,
            _date(inv.created_at),
            _date(inv.due_date),
            str(inv.totals.total),
            str(inv.totals.amount_paid),
            str(inv.totals.balance),
        ]
        for inv in invoices
    )
    return _write_csv(INVOICE_HEADERS, rows, output_path)


__all__ = [
    "export_estimates_csv",
    "export_invoices_csv",
    "export_work_orders_csv",
]

"""Invoice and payment CLI commands for Fieldwork Billing."""

import argparse

from fieldwork_billing.cli._common import (
    open_store,
    persist,
    print_document,
    print_document_table,
    resolve_db_path,
)
from fieldwork_billing.domain.documents import Invoice, Payment
from fieldwork_billing.domain.value_objects import InvoiceStatus, PaymentMethod
from fieldwork_billing.services.filtering import (
    DocumentSort,
    InvoiceFilters,
    filter_invoices,
    sort_documents,
)


def cmd_invoice_create(args: argparse.Namespace) -> int:
    """Create a draft invoice directly, without an estimate or work order."""
    db, store = open_store(resolve_db_path(args))
    try:
        invoice_id = store.add(
            Invoice(
                customer_id=args.customer_id,
                customer_name=args.customer_name,
                customer_email=args.email or "",
                service_address=args.address or "",
                line_items=list(args.item or []),
                tax_rate=args.tax_rate,
                payment_terms=args.terms,
                due_date=args.due_date,
                notes=args.notes,
            )
        )
        persist(store)
        invoice = store.get_invoice(invoice_id)
        assert invoice is not None
        print(f"Created invoice {invoice.document_number}")
        print(f"  ID:    {invoice.id}")
        print(f"  Total: {invoice.totals.total}")
        return 0
    finally:
        db.close()


def cmd_invoice_list(args: argparse.Namespace) -> int:
    """List invoices with their derived status."""
    db, store = open_store(resolve_db_path(args))
    try:
        filters = InvoiceFilters(
            search=args.search,
            status=[InvoiceStatus(s) for s in args.status or []],
            customer_id=args.customer_id,
            overdue=args.overdue,
        )
        invoices = sort_documents(
            filter_invoices(store.invoices, filters, store.now()),
            DocumentSort(field=args.sort, direction=args.direction),
        )
        if not invoices:
            print("No invoices found")
            return 0
        print_document_table(list(invoices))
        print(f"\nTotal: {len(invoices)} invoices")
        return 0
    finally:
        db.close()


def cmd_invoice_show(args: argparse.Namespace) -> int:
    """Show one invoice and its payments."""
    db, store = open_store(resolve_db_path(args))
    try:
        invoice = store.get_invoice(args.invoice_id)
        if invoice is None:
            print(f"Error: Invoice not found: {args.invoice_id}")
            return 1
        print_document(invoice)
        if invoice.due_date:
            print(f"  Due:      {invoice.due_date.date().isoformat()}")
        print(f"  Terms:    {invoice.payment_terms}")
        for payment in invoice.payments:
            print(
                f"  Payment {payment.date.date().isoformat()} "
                f"{payment.method.value:<12} {payment.amount:>10}  {payment.id}"
            )
        return 0
    finally:
        db.close()


_ACTIONS = {
    "send": ("send_invoice", "Sent"),
    "view": ("mark_invoice_viewed", "Marked viewed"),
    "cancel": ("cancel_invoice", "Cancelled"),
}


def cmd_invoice_action(args: argparse.Namespace) -> int:
    """Apply a lifecycle action (send, view, cancel) to an invoice."""
    method_name, verb = _ACTIONS[args.invoice_command]
    db, store = open_store(resolve_db_path(args))
    try:
        invoice = store.get_invoice(args.invoice_id)
        if invoice is None:
            print(f"Error: Invoice not found: {args.invoice_id}")
            return 1
        if not getattr(store, method_name)(args.invoice_id):
            print(
                f"Invoice {invoice.document_number} is {invoice.status.value}; "
                f"'{args.invoice_command}' does not apply"
            )
            return 1
        persist(store)
        print(f"{verb} invoice {invoice.document_number}")
        return 0
    finally:
        db.close()


def cmd_invoice_pay(args: argparse.Namespace) -> int:
    """Record a payment, or pay the remaining balance when no amount is given."""
    db, store = open_store(resolve_db_path(args))
    try:
        invoice = store.get_invoice(args.invoice_id)
        if invoice is None:
            print(f"Error: Invoice not found: {args.invoice_id}")
            return 1

        method = PaymentMethod(args.method)
        if args.amount is None:
            payment_id = store.mark_invoice_paid(args.invoice_id, method)
            if payment_id is None:
                print(f"Invoice {invoice.document_number} has no balance due")
                return 1
        else:
            payment_id = store.add_payment(
                args.invoice_id,
                Payment(
                    amount=args.amount,
                    date=args.date or store.now(),
                    method=method,
                    reference=args.reference,
                ),
            )
        persist(store)

        updated = store.get_invoice(args.invoice_id)
        assert updated is not None
        print(f"Recorded payment {payment_id} on invoice {updated.document_number}")
        print(f"  Status:  {updated.status.value}")
        print(f"  Balance: {updated.totals.balance}")
        return 0
    finally:
        db.close()

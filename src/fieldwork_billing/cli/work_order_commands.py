"""Work order CLI commands for Fieldwork Billing."""

import argparse

from fieldwork_billing.cli._common import (
    open_services,
    open_store,
    persist,
    print_document,
    print_document_table,
    resolve_db_path,
)
from fieldwork_billing.domain.documents import TimeEntry
from fieldwork_billing.domain.value_objects import WorkOrderPriority, WorkOrderStatus
from fieldwork_billing.services.filtering import (
    DocumentSort,
    WorkOrderFilters,
    filter_work_orders,
    sort_documents,
)


def cmd_work_order_list(args: argparse.Namespace) -> int:
    """List work orders."""
    db, store = open_store(resolve_db_path(args))
    try:
        filters = WorkOrderFilters(
            search=args.search,
            status=[WorkOrderStatus(s) for s in args.status or []],
            assigned_to=args.assigned_to or [],
            priority=[WorkOrderPriority(p) for p in args.priority or []],
        )
        work_orders = sort_documents(
            filter_work_orders(store.work_orders, filters),
            DocumentSort(field=args.sort, direction=args.direction),
        )
        if not work_orders:
            print("No work orders found")
            return 0
        print_document_table(list(work_orders))
        print(f"\nTotal: {len(work_orders)} work orders")
        return 0
    finally:
        db.close()


def cmd_work_order_show(args: argparse.Namespace) -> int:
    """Show one work order with its schedule and logged time."""
    db, store = open_store(resolve_db_path(args))
    try:
        work_order = store.get_work_order(args.work_order_id)
        if work_order is None:
            print(f"Error: Work order not found: {args.work_order_id}")
            return 1
        print_document(work_order)
        if work_order.scheduled_date:
            when = work_order.scheduled_date.date().isoformat()
            if work_order.scheduled_time:
                when = f"{when} {work_order.scheduled_time}"
            print(f"  Scheduled: {when}")
        if work_order.assigned_to:
            print(f"  Assigned:  {', '.join(work_order.assigned_to)}")
        print(f"  Hours:     {work_order.total_hours}")
        return 0
    finally:
        db.close()


def cmd_work_order_schedule(args: argparse.Namespace) -> int:
    """Schedule a work order."""
    db, store = open_store(resolve_db_path(args))
    try:
        work_order = store.get_work_order(args.work_order_id)
        if work_order is None:
            print(f"Error: Work order not found: {args.work_order_id}")
            return 1
        if not store.schedule_work_order(args.work_order_id, args.date, args.time):
            print(
                f"Work order {work_order.document_number} is "
                f"{work_order.status.value} and cannot be scheduled"
            )
            return 1
        persist(store)
        print(f"Scheduled work order {work_order.document_number}")
        return 0
    finally:
        db.close()


_ACTIONS = {
    "start": ("start_work_order", "Started"),
    "hold": ("hold_work_order", "Put on hold"),
    "complete": ("complete_work_order", "Completed"),
    "cancel": ("cancel_work_order", "Cancelled"),
}


def cmd_work_order_action(args: argparse.Namespace) -> int:
    """Apply a lifecycle action (start, hold, complete, cancel)."""
    method_name, verb = _ACTIONS[args.work_order_command]
    db, store = open_store(resolve_db_path(args))
    try:
        work_order = store.get_work_order(args.work_order_id)
        if work_order is None:
            print(f"Error: Work order not found: {args.work_order_id}")
            return 1
        if not getattr(store, method_name)(args.work_order_id):
            print(
                f"Work order {work_order.document_number} is "
                f"{work_order.status.value}; '{args.work_order_command}' does not apply"
            )
            return 1
        persist(store)
        print(f"{verb} work order {work_order.document_number}")
        return 0
    finally:
        db.close()


def cmd_work_order_log_time(args: argparse.Namespace) -> int:
    """Record a time entry on a work order."""
    db, store = open_store(resolve_db_path(args))
    try:
        entry_id = store.add_time_entry(
            args.work_order_id,
            TimeEntry(
                start_time=args.start,
                end_time=args.end,
                user_name=args.user or "",
                notes=args.notes,
            ),
        )
        if entry_id is None:
            print(f"Error: Work order not found: {args.work_order_id}")
            return 1
        persist(store)
        print(f"Logged time entry {entry_id}")
        return 0
    finally:
        db.close()


def cmd_work_order_convert(args: argparse.Namespace) -> int:
    """Convert a work order into an invoice."""
    db, store, converter = open_services(resolve_db_path(args))
    try:
        invoice_id = converter.work_order_to_invoice(
            args.work_order_id, payment_terms=args.terms
        )
        invoice = store.get_invoice(invoice_id) if invoice_id else None
        if invoice is None:
            print(f"Error: Work order not found: {args.work_order_id}")
            return 1
        persist(store)
        print(f"Created invoice {invoice.document_number}")
        print(f"  ID:  {invoice.id}")
        if invoice.due_date:
            print(f"  Due: {invoice.due_date.date().isoformat()}")
        return 0
    finally:
        db.close()

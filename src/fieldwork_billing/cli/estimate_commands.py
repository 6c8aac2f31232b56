"""Estimate CLI commands for Fieldwork Billing."""

import argparse

from fieldwork_billing.cli._common import (
    open_services,
    open_store,
    persist,
    print_document,
    print_document_table,
    resolve_db_path,
)
from fieldwork_billing.domain.documents import Estimate
from fieldwork_billing.domain.value_objects import EstimateStatus
from fieldwork_billing.services.filtering import (
    DocumentSort,
    EstimateFilters,
    filter_estimates,
    sort_documents,
)


def cmd_estimate_create(args: argparse.Namespace) -> int:
    """Create a draft estimate."""
    db, store = open_store(resolve_db_path(args))
    try:
        estimate_id = store.add(
            Estimate(
                customer_id=args.customer_id,
                customer_name=args.customer_name,
                customer_email=args.email or "",
                service_address=args.address or "",
                line_items=list(args.item or []),
                tax_rate=args.tax_rate,
                valid_until=args.valid_until,
                notes=args.notes,
            )
        )
        persist(store)
        estimate = store.get_estimate(estimate_id)
        assert estimate is not None
        print(f"Created estimate {estimate.document_number}")
        print(f"  ID:    {estimate.id}")
        print(f"  Total: {estimate.totals.total}")
        return 0
    finally:
        db.close()


def cmd_estimate_list(args: argparse.Namespace) -> int:
    """List estimates with their effective status."""
    db, store = open_store(resolve_db_path(args))
    try:
        filters = EstimateFilters(
            search=args.search,
            status=[EstimateStatus(s) for s in args.status or []],
            customer_id=args.customer_id,
        )
        estimates = sort_documents(
            filter_estimates(store.estimates, filters, store.now()),
            DocumentSort(field=args.sort, direction=args.direction),
        )
        if not estimates:
            print("No estimates found")
            return 0
        print_document_table(list(estimates))
        print(f"\nTotal: {len(estimates)} estimates")
        return 0
    finally:
        db.close()


def cmd_estimate_show(args: argparse.Namespace) -> int:
    """Show one estimate."""
    db, store = open_store(resolve_db_path(args))
    try:
        estimate = store.get_estimate(args.estimate_id)
        if estimate is None:
            print(f"Error: Estimate not found: {args.estimate_id}")
            return 1
        print_document(estimate)
        return 0
    finally:
        db.close()


_ACTIONS = {
    "send": ("send_estimate", "Sent"),
    "view": ("mark_estimate_viewed", "Marked viewed"),
    "accept": ("accept_estimate", "Accepted"),
    "decline": ("decline_estimate", "Declined"),
}


def cmd_estimate_action(args: argparse.Namespace) -> int:
    """Apply a lifecycle action (send, view, accept, decline) to an estimate."""
    method_name, verb = _ACTIONS[args.estimate_command]
    db, store = open_store(resolve_db_path(args))
    try:
        estimate = store.get_estimate(args.estimate_id)
        if estimate is None:
            print(f"Error: Estimate not found: {args.estimate_id}")
            return 1
        if not getattr(store, method_name)(args.estimate_id):
            print(
                f"Estimate {estimate.document_number} is {estimate.status.value}; "
                f"'{args.estimate_command}' does not apply"
            )
            return 1
        persist(store)
        print(f"{verb} estimate {estimate.document_number}")
        return 0
    finally:
        db.close()


def cmd_estimate_convert(args: argparse.Namespace) -> int:
    """Convert an estimate into a work order or an invoice."""
    db, store, converter = open_services(resolve_db_path(args))
    try:
        if args.to == "work-order":
            target_id = converter.estimate_to_work_order(
                args.estimate_id,
                scheduled_date=args.scheduled_date,
                assigned_to=args.assign or [],
                priority=args.priority,
            )
            target = store.get_work_order(target_id) if target_id else None
        else:
            target_id = converter.estimate_to_invoice(
                args.estimate_id, payment_terms=args.terms
            )
            target = store.get_invoice(target_id) if target_id else None

        if target is None:
            print(f"Error: Estimate not found: {args.estimate_id}")
            return 1
        persist(store)
        print(f"Created {target.kind.value.replace('_', ' ')} {target.document_number}")
        print(f"  ID: {target.id}")
        return 0
    finally:
        db.close()

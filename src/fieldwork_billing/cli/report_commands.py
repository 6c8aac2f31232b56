"""Statistics and CSV export commands for Fieldwork Billing."""

import argparse
from dataclasses import asdict

from fieldwork_billing.cli._common import open_store, resolve_db_path
from fieldwork_billing.services.export import (
    export_estimates_csv,
    export_invoices_csv,
    export_work_orders_csv,
)
from fieldwork_billing.services.filtering import filter_estimates, filter_invoices
from fieldwork_billing.services.stats import (
    estimate_stats,
    invoice_stats,
    work_order_stats,
)


def _print_stats(title: str, stats: object) -> None:
    print(title)
    print("-" * 40)
    values = asdict(stats)  # type: ignore[call-overload]
    by_status = values.pop("by_status", {})
    for name, value in values.items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        print(f"  {name.replace('_', ' ').capitalize():<26} {value}")
    if by_status:
        print("  By status:")
        for status, count in sorted(by_status.items()):
            print(f"    {status:<24} {count}")
    print()


def cmd_stats(args: argparse.Namespace) -> int:
    """Show summary statistics for one or all document kinds."""
    db, store = open_store(resolve_db_path(args))
    try:
        now = store.now()
        kind = args.kind
        if kind in ("all", "estimates"):
            _print_stats("Estimates", estimate_stats(store.estimates, now))
        if kind in ("all", "work-orders"):
            _print_stats("Work Orders", work_order_stats(store.work_orders))
        if kind in ("all", "invoices"):
            _print_stats("Invoices", invoice_stats(store.invoices, now))
        return 0
    finally:
        db.close()


def cmd_export(args: argparse.Namespace) -> int:
    """Export one document kind to CSV."""
    db, store = open_store(resolve_db_path(args))
    try:
        if args.kind == "estimates":
            estimates = filter_estimates(store.estimates, now=store.now())
            content = export_estimates_csv(estimates, args.output)
            count = len(estimates)
        elif args.kind == "work-orders":
            work_orders = store.work_orders
            content = export_work_orders_csv(work_orders, args.output)
            count = len(work_orders)
        else:
            invoices = filter_invoices(store.invoices, now=store.now())
            content = export_invoices_csv(invoices, args.output)
            count = len(invoices)

        if args.output:
            print(f"Exported {count} {args.kind.replace('-', ' ')} to {args.output}")
        else:
            print(content, end="")
        return 0
    finally:
        db.close()

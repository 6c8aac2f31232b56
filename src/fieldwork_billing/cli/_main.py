"""Command-line entry point for Fieldwork Billing."""

import argparse
import os
import sys

from fieldwork_billing.cli._common import (
    open_store,
    parse_datetime,
    parse_decimal,
    parse_line_item,
    parse_uuid,
    resolve_db_path,
)
from fieldwork_billing.cli.estimate_commands import (
    cmd_estimate_action,
    cmd_estimate_convert,
    cmd_estimate_create,
    cmd_estimate_list,
    cmd_estimate_show,
)
from fieldwork_billing.cli.invoice_commands import (
    cmd_invoice_action,
    cmd_invoice_create,
    cmd_invoice_list,
    cmd_invoice_pay,
    cmd_invoice_show,
)
from fieldwork_billing.cli.report_commands import cmd_export, cmd_stats
from fieldwork_billing.cli.work_order_commands import (
    cmd_work_order_action,
    cmd_work_order_convert,
    cmd_work_order_list,
    cmd_work_order_log_time,
    cmd_work_order_schedule,
    cmd_work_order_show,
)
from fieldwork_billing.config import LogLevel, get_settings
from fieldwork_billing.domain.value_objects import (
    EstimateStatus,
    InvoiceStatus,
    PaymentMethod,
    WorkOrderPriority,
    WorkOrderStatus,
)
from fieldwork_billing.exceptions import FieldworkBillingError
from fieldwork_billing.logging_config import configure_logging
from fieldwork_billing.repositories.sqlite import SQLiteDatabase


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = resolve_db_path(args)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    db.close()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show database status."""
    db_path = resolve_db_path(args)

    if not db_path.exists():
        print(f"No database found at {db_path}")
        print("Run 'fieldwork-billing init' to create a new database")
        return 1

    db, store = open_store(db_path)
    try:
        print(f"Database: {db_path}")
        print(f"Estimates: {len(store.estimates)}")
        print(f"Work orders: {len(store.work_orders)}")
        print(f"Invoices: {len(store.invoices)}")
        return 0
    finally:
        db.close()


def cmd_version(args: argparse.Namespace) -> int:
    """Show version."""
    from fieldwork_billing import __version__

    print(f"fieldwork-billing {__version__}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    if args.database:
        os.environ["FWB_SQLITE_PATH"] = str(args.database)
        get_settings.cache_clear()

    uvicorn.run(
        "fieldwork_billing.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload or settings.api_reload,
    )
    return 0


def _add_sort_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--sort", default="created_at", help="Field to sort by")
    parser.add_argument(
        "--direction", choices=["asc", "desc"], default="desc", help="Sort direction"
    )


def _add_customer_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--customer-id", required=True, help="Customer id")
    parser.add_argument("--customer-name", required=True, help="Customer name")
    parser.add_argument("--email", help="Customer email")
    parser.add_argument("--address", help="Service address")
    parser.add_argument(
        "--item",
        action="append",
        type=parse_line_item,
        help="Line item as description:quantity:rate[:type] (repeatable)",
    )
    parser.add_argument(
        "--tax-rate", type=parse_decimal, default="0", help="Tax rate percent"
    )
    parser.add_argument("--notes", help="Notes shown to the customer")


def _build_estimate_parser(
    subparsers: argparse._SubParsersAction,
) -> argparse.ArgumentParser:
    estimate_parser = subparsers.add_parser("estimate", help="Manage estimates")
    estimate_subparsers = estimate_parser.add_subparsers(
        dest="estimate_command", help="Estimate commands"
    )

    create_parser = estimate_subparsers.add_parser("create", help="Create an estimate")
    _add_customer_arguments(create_parser)
    create_parser.add_argument(
        "--valid-until", type=parse_datetime, help="Expiry date (default: from settings)"
    )
    create_parser.set_defaults(func=cmd_estimate_create)

    list_parser = estimate_subparsers.add_parser("list", help="List estimates")
    list_parser.add_argument("--search", help="Match number, customer or address")
    list_parser.add_argument(
        "--status",
        action="append",
        choices=[s.value for s in EstimateStatus],
        help="Filter by status (repeatable)",
    )
    list_parser.add_argument("--customer-id", help="Filter by customer id")
    _add_sort_arguments(list_parser)
    list_parser.set_defaults(func=cmd_estimate_list)

    show_parser = estimate_subparsers.add_parser("show", help="Show an estimate")
    show_parser.add_argument("estimate_id", type=parse_uuid, help="Estimate id")
    show_parser.set_defaults(func=cmd_estimate_show)

    for action, help_text in (
        ("send", "Send an estimate"),
        ("view", "Mark an estimate as viewed"),
        ("accept", "Accept an estimate"),
        ("decline", "Decline an estimate"),
    ):
        action_parser = estimate_subparsers.add_parser(action, help=help_text)
        action_parser.add_argument("estimate_id", type=parse_uuid, help="Estimate id")
        action_parser.set_defaults(func=cmd_estimate_action)

    convert_parser = estimate_subparsers.add_parser(
        "convert", help="Convert an estimate into a work order or invoice"
    )
    convert_parser.add_argument("estimate_id", type=parse_uuid, help="Estimate id")
    convert_parser.add_argument(
        "--to", choices=["work-order", "invoice"], required=True, help="Target kind"
    )
    convert_parser.add_argument(
        "--scheduled-date", type=parse_datetime, help="Schedule the new work order"
    )
    convert_parser.add_argument(
        "--assign", action="append", help="Assign a technician (repeatable)"
    )
    convert_parser.add_argument(
        "--priority",
        choices=[p.value for p in WorkOrderPriority],
        default="normal",
        help="Work order priority",
    )
    convert_parser.add_argument("--terms", help="Invoice payment terms, e.g. 'Net 15'")
    convert_parser.set_defaults(func=cmd_estimate_convert)

    return estimate_parser


def _build_work_order_parser(
    subparsers: argparse._SubParsersAction,
) -> argparse.ArgumentParser:
    work_order_parser = subparsers.add_parser("work-order", help="Manage work orders")
    work_order_subparsers = work_order_parser.add_subparsers(
        dest="work_order_command", help="Work order commands"
    )

    list_parser = work_order_subparsers.add_parser("list", help="List work orders")
    list_parser.add_argument("--search", help="Match number, customer or address")
    list_parser.add_argument(
        "--status",
        action="append",
        choices=[s.value for s in WorkOrderStatus],
        help="Filter by status (repeatable)",
    )
    list_parser.add_argument(
        "--assigned-to", action="append", help="Filter by technician (repeatable)"
    )
    list_parser.add_argument(
        "--priority",
        action="append",
        choices=[p.value for p in WorkOrderPriority],
        help="Filter by priority (repeatable)",
    )
    _add_sort_arguments(list_parser)
    list_parser.set_defaults(func=cmd_work_order_list)

    show_parser = work_order_subparsers.add_parser("show", help="Show a work order")
    show_parser.add_argument("work_order_id", type=parse_uuid, help="Work order id")
    show_parser.set_defaults(func=cmd_work_order_show)

    schedule_parser = work_order_subparsers.add_parser(
        "schedule", help="Schedule a work order"
    )
    schedule_parser.add_argument("work_order_id", type=parse_uuid, help="Work order id")
    schedule_parser.add_argument(
        "--date", type=parse_datetime, required=True, help="Scheduled date"
    )
    schedule_parser.add_argument("--time", help="Scheduled time, e.g. 09:00")
    schedule_parser.set_defaults(func=cmd_work_order_schedule)

    for action, help_text in (
        ("start", "Start work"),
        ("hold", "Put a work order on hold"),
        ("complete", "Complete a work order"),
        ("cancel", "Cancel a work order"),
    ):
        action_parser = work_order_subparsers.add_parser(action, help=help_text)
        action_parser.add_argument(
            "work_order_id", type=parse_uuid, help="Work order id"
        )
        action_parser.set_defaults(func=cmd_work_order_action)

    time_parser = work_order_subparsers.add_parser(
        "log-time", help="Record a time entry"
    )
    time_parser.add_argument("work_order_id", type=parse_uuid, help="Work order id")
    time_parser.add_argument(
        "--start", type=parse_datetime, required=True, help="Start time"
    )
    time_parser.add_argument("--end", type=parse_datetime, help="End time")
    time_parser.add_argument("--user", help="Technician name")
    time_parser.add_argument("--notes", help="Notes")
    time_parser.set_defaults(func=cmd_work_order_log_time)

    convert_parser = work_order_subparsers.add_parser(
        "convert", help="Convert a work order into an invoice"
    )
    convert_parser.add_argument("work_order_id", type=parse_uuid, help="Work order id")
    convert_parser.add_argument("--terms", help="Payment terms, e.g. 'Net 15'")
    convert_parser.set_defaults(func=cmd_work_order_convert)

    return work_order_parser


def _build_invoice_parser(
    subparsers: argparse._SubParsersAction,
) -> argparse.ArgumentParser:
    invoice_parser = subparsers.add_parser("invoice", help="Manage invoices")
    invoice_subparsers = invoice_parser.add_subparsers(
        dest="invoice_command", help="Invoice commands"
    )

    create_parser = invoice_subparsers.add_parser("create", help="Create an invoice")
    _add_customer_arguments(create_parser)
    create_parser.add_argument("--terms", default="Net 30", help="Payment terms")
    create_parser.add_argument("--due-date", type=parse_datetime, help="Due date")
    create_parser.set_defaults(func=cmd_invoice_create)

    list_parser = invoice_subparsers.add_parser("list", help="List invoices")
    list_parser.add_argument("--search", help="Match number, customer or address")
    list_parser.add_argument(
        "--status",
        action="append",
        choices=[s.value for s in InvoiceStatus],
        help="Filter by status (repeatable)",
    )
    list_parser.add_argument("--customer-id", help="Filter by customer id")
    list_parser.add_argument(
        "--overdue", action="store_true", help="Only overdue invoices"
    )
    _add_sort_arguments(list_parser)
    list_parser.set_defaults(func=cmd_invoice_list)

    show_parser = invoice_subparsers.add_parser("show", help="Show an invoice")
    show_parser.add_argument("invoice_id", type=parse_uuid, help="Invoice id")
    show_parser.set_defaults(func=cmd_invoice_show)

    for action, help_text in (
        ("send", "Send an invoice"),
        ("view", "Mark an invoice as viewed"),
        ("cancel", "Cancel an invoice"),
    ):
        action_parser = invoice_subparsers.add_parser(action, help=help_text)
        action_parser.add_argument("invoice_id", type=parse_uuid, help="Invoice id")
        action_parser.set_defaults(func=cmd_invoice_action)

    pay_parser = invoice_subparsers.add_parser(
        "pay", help="Record a payment (default: the remaining balance)"
    )
    pay_parser.add_argument("invoice_id", type=parse_uuid, help="Invoice id")
    pay_parser.add_argument("--amount", type=parse_decimal, help="Payment amount")
    pay_parser.add_argument(
        "--method",
        choices=[m.value for m in PaymentMethod],
        default="other",
        help="Payment method",
    )
    pay_parser.add_argument("--date", type=parse_datetime, help="Payment date")
    pay_parser.add_argument("--reference", help="Check number or reference")
    pay_parser.set_defaults(func=cmd_invoice_pay)

    return invoice_parser


def build_parser() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
    parser = argparse.ArgumentParser(
        prog="fieldwork-billing",
        description="Fieldwork Billing - Estimates, work orders and invoices",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # status command
    status_parser = subparsers.add_parser("status", help="Show database status")
    status_parser.set_defaults(func=cmd_status)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )
    serve_parser.set_defaults(func=cmd_serve)

    groups = {
        "estimate": _build_estimate_parser(subparsers),
        "work-order": _build_work_order_parser(subparsers),
        "invoice": _build_invoice_parser(subparsers),
    }

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show summary statistics")
    stats_parser.add_argument(
        "kind",
        nargs="?",
        choices=["all", "estimates", "work-orders", "invoices"],
        default="all",
        help="Document kind",
    )
    stats_parser.set_defaults(func=cmd_stats)

    # export command
    export_parser = subparsers.add_parser("export", help="Export documents to CSV")
    export_parser.add_argument(
        "kind", choices=["estimates", "work-orders", "invoices"], help="Document kind"
    )
    export_parser.add_argument(
        "--output", "-o", help="Output file (default: print to stdout)"
    )
    export_parser.set_defaults(func=cmd_export)

    return parser, groups


_GROUP_DESTS = {
    "estimate": "estimate_command",
    "work-order": "work_order_command",
    "invoice": "invoice_command",
}


def main(argv: list[str] | None = None) -> int:
    parser, group_parsers = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    dest = _GROUP_DESTS.get(args.command)
    if dest is not None and getattr(args, dest, None) is None:
        group_parsers[args.command].print_help()
        return 0

    settings = get_settings()
    level = LogLevel.DEBUG if args.verbose else LogLevel.WARNING
    configure_logging(settings.model_copy(update={"log_level": level}))

    try:
        result: int = args.func(args)
    except FieldworkBillingError as e:
        print(f"Error: {e.message}")
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())

"""Command-line interface package for Fieldwork Billing.

This package provides CLI commands organized into domain-specific submodules:
- estimate_commands: Estimate creation, lifecycle and conversion
- work_order_commands: Scheduling, time tracking and invoicing of work orders
- invoice_commands: Invoices and payments
- report_commands: Statistics and CSV export
"""

from fieldwork_billing.cli._common import (
    get_default_db_path,
    open_services,
    open_store,
)
from fieldwork_billing.cli._main import (
    build_parser,
    cmd_init,
    cmd_serve,
    cmd_status,
    cmd_version,
    main,
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

__all__ = [
    "build_parser",
    "cmd_estimate_action",
    "cmd_estimate_convert",
    "cmd_estimate_create",
    "cmd_estimate_list",
    "cmd_estimate_show",
    "cmd_export",
    "cmd_init",
    "cmd_invoice_action",
    "cmd_invoice_create",
    "cmd_invoice_list",
    "cmd_invoice_pay",
    "cmd_invoice_show",
    "cmd_serve",
    "cmd_stats",
    "cmd_status",
    "cmd_version",
    "cmd_work_order_action",
    "cmd_work_order_convert",
    "cmd_work_order_list",
    "cmd_work_order_log_time",
    "cmd_work_order_schedule",
    "cmd_work_order_show",
    "get_default_db_path",
    "main",
    "open_services",
    "open_store",
]

"""Totals calculation for financial documents.

Totals are a pure function of (line items, tax rate, payments). Every
figure is derived from quantity and rate at call time; stored line item
amounts are never read.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from fieldwork_billing.domain.value_objects import round_cents, to_decimal

if TYPE_CHECKING:
    from fieldwork_billing.domain.documents import LineItem, Payment

ZERO = Decimal("0.00")


@dataclass(frozen=True, slots=True)
class Totals:
    subtotal: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO
    amount_paid: Decimal = ZERO
    balance: Decimal = ZERO
    credit: Decimal = ZERO

    @property
    def non_taxable_amount(self) -> Decimal:
        return self.subtotal - self.taxable_amount

    @property
    def is_fully_paid(self) -> bool:
        return self.amount_paid > 0 and self.amount_paid >= self.total

    @property
    def is_partially_paid(self) -> bool:
        return Decimal("0") < self.amount_paid < self.total


def line_item_amount(
    quantity: Decimal | int | float | str, rate: Decimal | int | float | str
) -> Decimal:
    return round_cents(to_decimal(quantity) * to_decimal(rate))


def calculate_totals(
    line_items: Iterable[LineItem],
    tax_rate: Decimal | int | float | str,
    payments: Iterable[Payment] | None = None,
) -> Totals:
    """Compute the totals summary for a document.

    Args:
        line_items: Billable rows; each amount is recomputed as quantity x rate.
        tax_rate: Percentage applied to taxable rows (6 means 6%).
        payments: Invoice payments. Omitted for estimates and work orders.

    Returns:
        A new Totals value. ``balance`` never goes below zero; any
        overpayment is reported as ``credit``.
    """
    subtotal = Decimal("0")
    taxable_amount = Decimal("0")
    for item in line_items:
        amount = line_item_amount(item.quantity, item.rate)
        subtotal += amount
        if item.taxable:
            taxable_amount += amount

    subtotal = round_cents(subtotal)
    taxable_amount = round_cents(taxable_amount)
    tax_amount = round_cents(taxable_amount * to_decimal(tax_rate) / Decimal("100"))
    total = round_cents(subtotal + tax_amount)

    amount_paid = round_cents(
        sum((to_decimal(payment.amount) for payment in payments or ()), Decimal("0"))
    )
    outstanding = total - amount_paid

    return Totals(
        subtotal=subtotal,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total=total,
        amount_paid=amount_paid,
        balance=max(outstanding, ZERO),
        credit=max(-outstanding, ZERO),
    )


__all__ = ["Totals", "calculate_totals", "line_item_amount"]

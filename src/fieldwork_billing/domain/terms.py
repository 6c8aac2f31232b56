"""Payment terms ("Net 30", "Due on receipt") and deadline offsets."""

import re
from datetime import datetime

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]

from fieldwork_billing.exceptions import InvalidPaymentTermsError

DUE_ON_RECEIPT = "Due on receipt"

_NET_PATTERN = re.compile(r"^\s*net\s*(\d+)\s*$", re.IGNORECASE)
_DAYS_PATTERN = re.compile(r"^\s*(\d+)\s*(?:days?)?\s*$", re.IGNORECASE)


def terms_label(days: int) -> str:
    if days == 0:
        return DUE_ON_RECEIPT
    return f"Net {days}"


def parse_payment_terms(terms: str | int) -> int:
    """Return the number of days a payment term allows.

    Accepts a day count, "Net N", "N days" or "Due on receipt".
    """
    if isinstance(terms, int):
        if terms < 0:
            raise InvalidPaymentTermsError(str(terms))
        return terms
    if terms.strip().lower() == DUE_ON_RECEIPT.lower():
        return 0
    for pattern in (_NET_PATTERN, _DAYS_PATTERN):
        match = pattern.match(terms)
        if match is not None:
            return int(match.group(1))
    raise InvalidPaymentTermsError(terms)


def offset_days(start: datetime, days: int) -> datetime:
    return start + relativedelta(days=days)


__all__ = [
    "DUE_ON_RECEIPT",
    "offset_days",
    "parse_payment_terms",
    "terms_label",
]

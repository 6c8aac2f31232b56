"""Pre-fill of denormalized customer and job details on new documents."""

from __future__ import annotations

import copy
from typing import TypeVar

from fieldwork_billing.domain.documents import FinancialDocument
from fieldwork_billing.logging_config import get_logger
from fieldwork_billing.repositories.interfaces import CustomerDirectory

logger = get_logger(__name__)

D = TypeVar("D", bound=FinancialDocument)


def prefill_from_directory(document: D, directory: CustomerDirectory) -> D:
    """Return a copy of ``document`` with customer and job details filled in.

    Only blank fields are filled. The store keeps the copied name/id pair and
    never consults the directory again after creation.
    """
    filled = copy.deepcopy(document)

    customer = directory.find_customer_by_id(filled.customer_id)
    if customer is None:
        logger.warning("customer_not_found", customer_id=filled.customer_id)
    else:
        filled.customer_name = filled.customer_name or customer.name
        filled.customer_email = filled.customer_email or customer.email
        filled.customer_phone = filled.customer_phone or customer.phone
        filled.service_address = filled.service_address or customer.service_address
        if hasattr(filled, "billing_address") and not filled.billing_address:
            filled.billing_address = customer.billing_address  # type: ignore[attr-defined]

    if filled.job_id is not None:
        job = directory.find_job_by_id(filled.job_id)
        if job is None:
            logger.warning("job_not_found", job_id=filled.job_id)
        else:
            filled.job_name = filled.job_name or job.name
            if job.service_address and not filled.service_address:
                filled.service_address = job.service_address

    return filled


__all__ = ["prefill_from_directory"]

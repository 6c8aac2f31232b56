"""Conversion between document kinds.

Three routes exist: estimate -> work order, work order -> invoice and
estimate -> invoice. Each copies customer, job and line items, resets the
lifecycle of the new kind, creates the target through the document store and
then stamps the provenance link back on the source.
"""

from __future__ import annotations

import copy
import functools
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar, cast
from uuid import UUID

from fieldwork_billing.config import Settings, get_settings
from fieldwork_billing.domain.documents import (
    Estimate,
    FinancialDocument,
    Invoice,
    WorkOrder,
)
from fieldwork_billing.domain.terms import offset_days, parse_payment_terms, terms_label
from fieldwork_billing.domain.value_objects import DocumentKind, WorkOrderPriority
from fieldwork_billing.exceptions import UnsupportedConversionError
from fieldwork_billing.logging_config import get_logger
from fieldwork_billing.services.document_store import DocumentStore

logger = get_logger(__name__)

# Source field recording the target created from it, per route.
_LINK_FIELDS: dict[tuple[DocumentKind, DocumentKind], str] = {
    (DocumentKind.ESTIMATE, DocumentKind.WORK_ORDER): "converted_to_work_order_id",
    (DocumentKind.WORK_ORDER, DocumentKind.INVOICE): "converted_to_invoice_id",
    (DocumentKind.ESTIMATE, DocumentKind.INVOICE): "converted_to_invoice_id",
}

_F = TypeVar("_F", bound=Callable[..., Any])


def _under_store_lock(method: _F) -> _F:
    """Keep the source lookup, target creation and link in one critical section."""

    @functools.wraps(method)
    def wrapper(self: ConversionService, *args: Any, **kwargs: Any) -> Any:
        with self._store.lock:
            return method(self, *args, **kwargs)

    return cast(_F, wrapper)


def _identity(source: FinancialDocument) -> dict[str, Any]:
    return {
        "customer_id": source.customer_id,
        "customer_name": source.customer_name,
        "customer_email": source.customer_email,
        "customer_phone": source.customer_phone,
        "service_address": source.service_address,
        "job_id": source.job_id,
        "job_name": source.job_name,
        "line_items": copy.deepcopy(source.line_items),
        "tax_rate": source.tax_rate,
        "created_by": source.created_by,
    }


def work_order_from_estimate(
    estimate: Estimate,
    assigned_to: list[str] | None = None,
    priority: WorkOrderPriority = WorkOrderPriority.NORMAL,
    instructions: str | None = None,
) -> WorkOrder:
    return WorkOrder(
        **_identity(estimate),
        estimate_id=estimate.id,
        assigned_to=list(assigned_to or []),
        priority=priority,
        internal_notes=f"Created from estimate {estimate.document_number}",
        customer_notes=estimate.notes,
        instructions=instructions,
    )


def invoice_from_work_order(
    work_order: WorkOrder, payment_terms: str, due_date: datetime
) -> Invoice:
    return Invoice(
        **_identity(work_order),
        work_order_id=work_order.id,
        estimate_id=work_order.estimate_id,
        payment_terms=payment_terms,
        due_date=due_date,
        notes=work_order.customer_notes,
    )


def invoice_from_estimate(
    estimate: Estimate, payment_terms: str, due_date: datetime
) -> Invoice:
    return Invoice(
        **_identity(estimate),
        estimate_id=estimate.id,
        billing_address=estimate.billing_address,
        terms_and_conditions=estimate.terms_and_conditions,
        payment_terms=payment_terms,
        due_date=due_date,
        notes=estimate.notes,
    )


class ConversionService:
    """Creates documents of one kind from documents of another."""

    def __init__(
        self,
        store: DocumentStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock or store.now

    def convert(
        self,
        source_kind: DocumentKind,
        source_id: UUID,
        target_kind: DocumentKind,
        **extra: Any,
    ) -> UUID | None:
        """Convert a document and return the id of the new target.

        ``extra`` carries route-specific options: ``scheduled_date``,
        ``scheduled_time``, ``assigned_to``, ``priority`` and
        ``instructions`` for work orders; ``payment_terms`` and
        ``due_date`` for invoices.

        Returns:
            The target id, or None if the source does not exist.

        Raises:
            UnsupportedConversionError: If no route links the two kinds.
        """
        route = (source_kind, target_kind)
        if route == (DocumentKind.ESTIMATE, DocumentKind.WORK_ORDER):
            return self.estimate_to_work_order(source_id, **extra)
        if route == (DocumentKind.WORK_ORDER, DocumentKind.INVOICE):
            return self.work_order_to_invoice(source_id, **extra)
        if route == (DocumentKind.ESTIMATE, DocumentKind.INVOICE):
            return self.estimate_to_invoice(source_id, **extra)
        raise UnsupportedConversionError(source_kind.value, target_kind.value)

    @_under_store_lock
    def estimate_to_work_order(
        self,
        estimate_id: UUID,
        scheduled_date: datetime | None = None,
        scheduled_time: str | None = None,
        assigned_to: list[str] | None = None,
        priority: WorkOrderPriority | str = WorkOrderPriority.NORMAL,
        instructions: str | None = None,
    ) -> UUID | None:
        estimate = self._store.get_estimate(estimate_id)
        if estimate is None:
            return None
        route = (DocumentKind.ESTIMATE, DocumentKind.WORK_ORDER)
        existing = self._existing_target(estimate, route)
        if existing is not None:
            return existing

        payload = work_order_from_estimate(
            estimate,
            assigned_to=assigned_to,
            priority=WorkOrderPriority(priority),
            instructions=instructions,
        )
        target_id = self._store.add(payload)
        if scheduled_date is not None:
            self._store.schedule_work_order(target_id, scheduled_date, scheduled_time)
        return self._link(estimate, route, target_id)

    @_under_store_lock
    def work_order_to_invoice(
        self,
        work_order_id: UUID,
        payment_terms: str | int | None = None,
        due_date: datetime | None = None,
    ) -> UUID | None:
        work_order = self._store.get_work_order(work_order_id)
        if work_order is None:
            return None
        route = (DocumentKind.WORK_ORDER, DocumentKind.INVOICE)
        existing = self._existing_target(work_order, route)
        if existing is not None:
            return existing

        terms, due = self._invoice_terms(payment_terms, due_date)
        target_id = self._store.add(invoice_from_work_order(work_order, terms, due))
        return self._link(work_order, route, target_id)

    @_under_store_lock
    def estimate_to_invoice(
        self,
        estimate_id: UUID,
        payment_terms: str | int | None = None,
        due_date: datetime | None = None,
    ) -> UUID | None:
        estimate = self._store.get_estimate(estimate_id)
        if estimate is None:
            return None
        route = (DocumentKind.ESTIMATE, DocumentKind.INVOICE)
        existing = self._existing_target(estimate, route)
        if existing is not None:
            return existing

        terms, due = self._invoice_terms(payment_terms, due_date)
        target_id = self._store.add(invoice_from_estimate(estimate, terms, due))
        return self._link(estimate, route, target_id)

    def _invoice_terms(
        self, payment_terms: str | int | None, due_date: datetime | None
    ) -> tuple[str, datetime]:
        """Resolve the terms label and due date of a new invoice.

        An explicit due date wins; otherwise the due date is now plus the
        days the terms allow, falling back to the configured default.
        """
        if payment_terms is None:
            days = self._settings.default_payment_terms_days
            label = terms_label(days)
        else:
            days = parse_payment_terms(payment_terms)
            label = (
                payment_terms if isinstance(payment_terms, str) else terms_label(days)
            )
        if due_date is None:
            due_date = offset_days(self._clock(), days)
        return label, due_date

    def _existing_target(
        self, source: FinancialDocument, route: tuple[DocumentKind, DocumentKind]
    ) -> UUID | None:
        """Return the existing target when re-conversion is disabled."""
        existing = getattr(source, _LINK_FIELDS[route])
        if existing is None:
            return None
        if self._store.get(route[1], existing) is None:
            # Previous target was deleted; convert again.
            return None
        if not self._settings.allow_reconversion:
            logger.info(
                "conversion_skipped",
                source_kind=route[0].value,
                source_id=str(source.id),
                target_kind=route[1].value,
                target_id=str(existing),
            )
            return existing
        logger.warning(
            "document_reconverted",
            source_kind=route[0].value,
            source_id=str(source.id),
            target_kind=route[1].value,
            previous_target_id=str(existing),
        )
        return None

    def _link(
        self,
        source: FinancialDocument,
        route: tuple[DocumentKind, DocumentKind],
        target_id: UUID,
    ) -> UUID:
        self._store.update(route[0], source.id, **{_LINK_FIELDS[route]: target_id})
        logger.info(
            "document_converted",
            source_kind=route[0].value,
            source_id=str(source.id),
            target_kind=route[1].value,
            target_id=str(target_id),
        )
        return target_id


__all__ = [
    "ConversionService",
    "invoice_from_estimate",
    "invoice_from_work_order",
    "work_order_from_estimate",
]

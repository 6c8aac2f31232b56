"""API routes for Fieldwork Billing."""

from dataclasses import asdict
from decimal import Decimal
from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from fieldwork_billing.api.schemas import (
    CreatedResponse,
    DocumentPatch,
    EstimateCreate,
    EstimateResponse,
    HealthResponse,
    InvoiceConversionRequest,
    InvoiceCreate,
    InvoiceResponse,
    LineItemCreate,
    LineItemUpdate,
    MarkPaidRequest,
    PaymentCreate,
    PaymentUpdate,
    PhotoRequest,
    ScheduleRequest,
    TimeEntryCreate,
    TimeEntryUpdate,
    UtcDatetime,
    WorkOrderConversionRequest,
    WorkOrderCreate,
    WorkOrderResponse,
)
from fieldwork_billing.config import get_settings
from fieldwork_billing.container import get_conversion_service, get_document_store
from fieldwork_billing.domain.documents import DOCUMENT_TYPES, FinancialDocument
from fieldwork_billing.domain.value_objects import (
    DocumentKind,
    EstimateStatus,
    InvoiceStatus,
    PaymentMethod,
    WorkOrderPriority,
    WorkOrderStatus,
)
from fieldwork_billing.exceptions import (
    DocumentNotFoundError,
    LineItemNotFoundError,
    PaymentNotFoundError,
    StaleDocumentError,
    TimeEntryNotFoundError,
)
from fieldwork_billing.repositories.serialization import (
    decode_changes,
    document_to_dict,
)
from fieldwork_billing.services.conversion import ConversionService
from fieldwork_billing.services.document_store import DocumentStore
from fieldwork_billing.services.export import (
    export_estimates_csv,
    export_invoices_csv,
    export_work_orders_csv,
)
from fieldwork_billing.services.filtering import (
    DocumentSort,
    EstimateFilters,
    InvoiceFilters,
    WorkOrderFilters,
    filter_estimates,
    filter_invoices,
    filter_work_orders,
    sort_documents,
)
from fieldwork_billing.services.stats import (
    estimate_stats,
    invoice_stats,
    work_order_stats,
)

StoreDep = Annotated[DocumentStore, Depends(get_document_store)]
ConversionDep = Annotated[ConversionService, Depends(get_conversion_service)]

# Create routers
health_router = APIRouter(tags=["health"])
estimate_router = APIRouter(prefix="/estimates", tags=["estimates"])
work_order_router = APIRouter(prefix="/work-orders", tags=["work orders"])
invoice_router = APIRouter(prefix="/invoices", tags=["invoices"])

_RESPONSE_TYPES: dict[DocumentKind, type[BaseModel]] = {
    DocumentKind.ESTIMATE: EstimateResponse,
    DocumentKind.WORK_ORDER: WorkOrderResponse,
    DocumentKind.INVOICE: InvoiceResponse,
}


# Helper functions
def _to_response(document: FinancialDocument) -> Any:
    """Convert a document to its response schema."""
    return _RESPONSE_TYPES[document.kind].model_validate(document_to_dict(document))


def _require(store: DocumentStore, kind: DocumentKind, document_id: UUID) -> Any:
    document = store.get(kind, document_id)
    if document is None:
        raise DocumentNotFoundError(kind.value, document_id)
    return document


def _stats_to_dict(stats: Any) -> dict[str, Any]:
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in asdict(stats).items()
    }


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# Filter dependencies
def sort_params(
    sort: str = "created_at",
    direction: Literal["asc", "desc"] = "desc",
) -> DocumentSort:
    return DocumentSort(field=sort, direction=direction)


def estimate_filter_params(
    search: str | None = None,
    status: Annotated[list[EstimateStatus] | None, Query()] = None,
    customer_id: str | None = None,
    date_from: UtcDatetime | None = None,
    date_to: UtcDatetime | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
) -> EstimateFilters:
    return EstimateFilters(
        search=search,
        status=list(status or []),
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
        max_amount=max_amount,
    )


def work_order_filter_params(
    search: str | None = None,
    status: Annotated[list[WorkOrderStatus] | None, Query()] = None,
    customer_id: str | None = None,
    assigned_to: Annotated[list[str] | None, Query()] = None,
    priority: Annotated[list[WorkOrderPriority] | None, Query()] = None,
    date_from: UtcDatetime | None = None,
    date_to: UtcDatetime | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
) -> WorkOrderFilters:
    return WorkOrderFilters(
        search=search,
        status=list(status or []),
        customer_id=customer_id,
        assigned_to=list(assigned_to or []),
        priority=list(priority or []),
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
        max_amount=max_amount,
    )


def invoice_filter_params(
    search: str | None = None,
    status: Annotated[list[InvoiceStatus] | None, Query()] = None,
    customer_id: str | None = None,
    date_from: UtcDatetime | None = None,
    date_to: UtcDatetime | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
    overdue: bool = False,
) -> InvoiceFilters:
    return InvoiceFilters(
        search=search,
        status=list(status or []),
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
        max_amount=max_amount,
        overdue=overdue,
    )


SortDep = Annotated[DocumentSort, Depends(sort_params)]


# Health endpoint
@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=get_settings().app_version)


# Collection endpoints (registered before /{document_id})
@estimate_router.post(
    "", response_model=EstimateResponse, status_code=status.HTTP_201_CREATED
)
def create_estimate(payload: EstimateCreate, store: StoreDep) -> Any:
    """Create a new estimate."""
    return _create(store, DocumentKind.ESTIMATE, payload)


@estimate_router.get("", response_model=list[EstimateResponse])
def list_estimates(
    store: StoreDep,
    filters: Annotated[EstimateFilters, Depends(estimate_filter_params)],
    sort: SortDep,
) -> list[Any]:
    """List estimates; past-validity estimates read as expired."""
    view = sort_documents(filter_estimates(store.estimates, filters, store.now()), sort)
    return [_to_response(e) for e in view]


@estimate_router.get("/stats")
def get_estimate_stats(store: StoreDep) -> dict[str, Any]:
    return _stats_to_dict(estimate_stats(store.estimates, store.now()))


@estimate_router.get("/export")
def export_estimates(
    store: StoreDep,
    filters: Annotated[EstimateFilters, Depends(estimate_filter_params)],
    sort: SortDep,
) -> Response:
    view = sort_documents(filter_estimates(store.estimates, filters, store.now()), sort)
    return _csv_response(export_estimates_csv(view), "estimates.csv")


@work_order_router.post(
    "", response_model=WorkOrderResponse, status_code=status.HTTP_201_CREATED
)
def create_work_order(payload: WorkOrderCreate, store: StoreDep) -> Any:
    """Create a new work order."""
    return _create(store, DocumentKind.WORK_ORDER, payload)


@work_order_router.get("", response_model=list[WorkOrderResponse])
def list_work_orders(
    store: StoreDep,
    filters: Annotated[WorkOrderFilters, Depends(work_order_filter_params)],
    sort: SortDep,
) -> list[Any]:
    view = sort_documents(filter_work_orders(store.work_orders, filters), sort)
    return [_to_response(wo) for wo in view]


@work_order_router.get("/stats")
def get_work_order_stats(store: StoreDep) -> dict[str, Any]:
    return _stats_to_dict(work_order_stats(store.work_orders))


@work_order_router.get("/export")
def export_work_orders(
    store: StoreDep,
    filters: Annotated[WorkOrderFilters, Depends(work_order_filter_params)],
    sort: SortDep,
) -> Response:
    view = sort_documents(filter_work_orders(store.work_orders, filters), sort)
    return _csv_response(export_work_orders_csv(view), "work-orders.csv")


@invoice_router.post(
    "", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED
)
def create_invoice(payload: InvoiceCreate, store: StoreDep) -> Any:
    """Create a new invoice."""
    return _create(store, DocumentKind.INVOICE, payload)


@invoice_router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    store: StoreDep,
    filters: Annotated[InvoiceFilters, Depends(invoice_filter_params)],
    sort: SortDep,
) -> list[Any]:
    """List invoices with their status derived as of now."""
    view = sort_documents(filter_invoices(store.invoices, filters, store.now()), sort)
    return [_to_response(inv) for inv in view]


@invoice_router.get("/stats")
def get_invoice_stats(store: StoreDep) -> dict[str, Any]:
    return _stats_to_dict(invoice_stats(store.invoices, store.now()))


@invoice_router.get("/export")
def export_invoices(
    store: StoreDep,
    filters: Annotated[InvoiceFilters, Depends(invoice_filter_params)],
    sort: SortDep,
) -> Response:
    view = sort_documents(filter_invoices(store.invoices, filters, store.now()), sort)
    return _csv_response(export_invoices_csv(view), "invoices.csv")


def _create(store: DocumentStore, kind: DocumentKind, payload: BaseModel) -> Any:
    data = payload.model_dump(exclude={"line_items"})
    line_items = [
        item.model_dump(exclude_none=True)
        for item in payload.line_items  # type: ignore[attr-defined]
    ]
    document = DOCUMENT_TYPES[kind](**data, line_items=line_items)
    document_id = store.add(document)
    return _to_response(_require(store, kind, document_id))


# Per-document endpoints shared by all kinds
def _register_document_routes(router: APIRouter, kind: DocumentKind) -> None:
    response_model = _RESPONSE_TYPES[kind]

    @router.get("/{document_id}", response_model=response_model)
    def get_document(document_id: UUID, store: StoreDep) -> Any:
        return _to_response(_require(store, kind, document_id))

    @router.patch("/{document_id}", response_model=response_model)
    def update_document(
        document_id: UUID, payload: DocumentPatch, store: StoreDep
    ) -> Any:
        current = _require(store, kind, document_id)
        try:
            updated = store.update(
                kind,
                document_id,
                expected_version=payload.expected_version,
                **decode_changes(payload.changes),
            )
        except (TypeError, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
            ) from e
        if updated is None:
            raise StaleDocumentError(
                document_id, payload.expected_version or current.version
            )
        return _to_response(updated)

    @router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_document(document_id: UUID, store: StoreDep) -> Response:
        if not store.delete(kind, document_id):
            raise DocumentNotFoundError(kind.value, document_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post(
        "/{document_id}/duplicate",
        response_model=response_model,
        status_code=status.HTTP_201_CREATED,
    )
    def duplicate_document(document_id: UUID, store: StoreDep) -> Any:
        new_id = store.duplicate(kind, document_id)
        if new_id is None:
            raise DocumentNotFoundError(kind.value, document_id)
        return _to_response(_require(store, kind, new_id))

    @router.post(
        "/{document_id}/line-items",
        response_model=CreatedResponse,
        status_code=status.HTTP_201_CREATED,
    )
    def add_line_item(
        document_id: UUID, payload: LineItemCreate, store: StoreDep
    ) -> CreatedResponse:
        line_item_id = store.add_line_item(
            kind, document_id, payload.model_dump(exclude_none=True)
        )
        if line_item_id is None:
            raise DocumentNotFoundError(kind.value, document_id)
        return CreatedResponse(id=line_item_id)

    @router.put("/{document_id}/line-items", response_model=response_model)
    def reorder_line_items(
        document_id: UUID, payload: list[LineItemCreate], store: StoreDep
    ) -> Any:
        _require(store, kind, document_id)
        store.reorder_line_items(
            kind, document_id, [item.model_dump(exclude_none=True) for item in payload]
        )
        return _to_response(_require(store, kind, document_id))

    @router.patch(
        "/{document_id}/line-items/{line_item_id}", response_model=response_model
    )
    def update_line_item(
        document_id: UUID,
        line_item_id: UUID,
        payload: LineItemUpdate,
        store: StoreDep,
    ) -> Any:
        _require(store, kind, document_id)
        if not store.update_line_item(
            kind, document_id, line_item_id, **payload.model_dump(exclude_none=True)
        ):
            raise LineItemNotFoundError(document_id, line_item_id)
        return _to_response(_require(store, kind, document_id))

    @router.delete(
        "/{document_id}/line-items/{line_item_id}", response_model=response_model
    )
    def delete_line_item(
        document_id: UUID, line_item_id: UUID, store: StoreDep
    ) -> Any:
        _require(store, kind, document_id)
        if not store.delete_line_item(kind, document_id, line_item_id):
            raise LineItemNotFoundError(document_id, line_item_id)
        return _to_response(_require(store, kind, document_id))


_register_document_routes(estimate_router, DocumentKind.ESTIMATE)
_register_document_routes(work_order_router, DocumentKind.WORK_ORDER)
_register_document_routes(invoice_router, DocumentKind.INVOICE)


def _apply_action(
    store: DocumentStore, kind: DocumentKind, document_id: UUID, action: str
) -> Any:
    """Run a status action; ignored transitions return the document unchanged."""
    _require(store, kind, document_id)
    store.transition(kind, document_id, action)
    return _to_response(_require(store, kind, document_id))


# Estimate actions
@estimate_router.post("/{document_id}/send", response_model=EstimateResponse)
def send_estimate(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.ESTIMATE, document_id, "send")


@estimate_router.post("/{document_id}/mark-viewed", response_model=EstimateResponse)
def mark_estimate_viewed(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.ESTIMATE, document_id, "mark_viewed")


@estimate_router.post("/{document_id}/accept", response_model=EstimateResponse)
def accept_estimate(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.ESTIMATE, document_id, "accept")


@estimate_router.post("/{document_id}/decline", response_model=EstimateResponse)
def decline_estimate(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.ESTIMATE, document_id, "decline")


@estimate_router.post(
    "/{document_id}/convert/work-order",
    response_model=WorkOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def convert_estimate_to_work_order(
    document_id: UUID,
    payload: WorkOrderConversionRequest,
    store: StoreDep,
    converter: ConversionDep,
) -> Any:
    """Create a work order from an estimate."""
    target_id = converter.estimate_to_work_order(
        document_id,
        scheduled_date=payload.scheduled_date,
        scheduled_time=payload.scheduled_time,
        assigned_to=payload.assigned_to,
        priority=payload.priority,
        instructions=payload.instructions,
    )
    if target_id is None:
        raise DocumentNotFoundError(DocumentKind.ESTIMATE.value, document_id)
    return _to_response(_require(store, DocumentKind.WORK_ORDER, target_id))


@estimate_router.post(
    "/{document_id}/convert/invoice",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
def convert_estimate_to_invoice(
    document_id: UUID,
    payload: InvoiceConversionRequest,
    store: StoreDep,
    converter: ConversionDep,
) -> Any:
    """Create an invoice directly from an estimate."""
    target_id = converter.estimate_to_invoice(
        document_id, payment_terms=payload.payment_terms, due_date=payload.due_date
    )
    if target_id is None:
        raise DocumentNotFoundError(DocumentKind.ESTIMATE.value, document_id)
    return _to_response(_require(store, DocumentKind.INVOICE, target_id))


# Work order actions
@work_order_router.post("/{document_id}/schedule", response_model=WorkOrderResponse)
def schedule_work_order(
    document_id: UUID, payload: ScheduleRequest, store: StoreDep
) -> Any:
    if not store.schedule_work_order(
        document_id, payload.scheduled_date, payload.scheduled_time
    ):
        raise DocumentNotFoundError(DocumentKind.WORK_ORDER.value, document_id)
    return _to_response(_require(store, DocumentKind.WORK_ORDER, document_id))


@work_order_router.post("/{document_id}/start", response_model=WorkOrderResponse)
def start_work_order(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.WORK_ORDER, document_id, "start")


@work_order_router.post("/{document_id}/hold", response_model=WorkOrderResponse)
def hold_work_order(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.WORK_ORDER, document_id, "hold")


@work_order_router.post("/{document_id}/complete", response_model=WorkOrderResponse)
def complete_work_order(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.WORK_ORDER, document_id, "complete")


@work_order_router.post("/{document_id}/cancel", response_model=WorkOrderResponse)
def cancel_work_order(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.WORK_ORDER, document_id, "cancel")


@work_order_router.post(
    "/{document_id}/time-entries",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_time_entry(
    document_id: UUID, payload: TimeEntryCreate, store: StoreDep
) -> CreatedResponse:
    entry_id = store.add_time_entry(document_id, payload.model_dump())
    if entry_id is None:
        raise DocumentNotFoundError(DocumentKind.WORK_ORDER.value, document_id)
    return CreatedResponse(id=entry_id)


@work_order_router.patch(
    "/{document_id}/time-entries/{time_entry_id}", response_model=WorkOrderResponse
)
def update_time_entry(
    document_id: UUID,
    time_entry_id: UUID,
    payload: TimeEntryUpdate,
    store: StoreDep,
) -> Any:
    _require(store, DocumentKind.WORK_ORDER, document_id)
    if not store.update_time_entry(
        document_id, time_entry_id, **payload.model_dump(exclude_unset=True)
    ):
        raise TimeEntryNotFoundError(document_id, time_entry_id)
    return _to_response(_require(store, DocumentKind.WORK_ORDER, document_id))


@work_order_router.delete(
    "/{document_id}/time-entries/{time_entry_id}", response_model=WorkOrderResponse
)
def delete_time_entry(
    document_id: UUID, time_entry_id: UUID, store: StoreDep
) -> Any:
    _require(store, DocumentKind.WORK_ORDER, document_id)
    if not store.delete_time_entry(document_id, time_entry_id):
        raise TimeEntryNotFoundError(document_id, time_entry_id)
    return _to_response(_require(store, DocumentKind.WORK_ORDER, document_id))


@work_order_router.post("/{document_id}/photos", response_model=WorkOrderResponse)
def add_photo(document_id: UUID, payload: PhotoRequest, store: StoreDep) -> Any:
    if not store.add_photo(document_id, payload.url):
        raise DocumentNotFoundError(DocumentKind.WORK_ORDER.value, document_id)
    return _to_response(_require(store, DocumentKind.WORK_ORDER, document_id))


@work_order_router.delete("/{document_id}/photos", response_model=WorkOrderResponse)
def remove_photo(
    document_id: UUID,
    store: StoreDep,
    url: str = Query(..., min_length=1),
) -> Any:
    _require(store, DocumentKind.WORK_ORDER, document_id)
    store.remove_photo(document_id, url)
    return _to_response(_require(store, DocumentKind.WORK_ORDER, document_id))


@work_order_router.post(
    "/{document_id}/convert/invoice",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
def convert_work_order_to_invoice(
    document_id: UUID,
    payload: InvoiceConversionRequest,
    store: StoreDep,
    converter: ConversionDep,
) -> Any:
    """Create an invoice from a work order."""
    target_id = converter.work_order_to_invoice(
        document_id, payment_terms=payload.payment_terms, due_date=payload.due_date
    )
    if target_id is None:
        raise DocumentNotFoundError(DocumentKind.WORK_ORDER.value, document_id)
    return _to_response(_require(store, DocumentKind.INVOICE, target_id))


# Invoice actions
@invoice_router.post("/{document_id}/send", response_model=InvoiceResponse)
def send_invoice(document_id: UUID, store: StoreDep) -> Any:
    if not store.send_invoice(document_id):
        raise DocumentNotFoundError(DocumentKind.INVOICE.value, document_id)
    return _to_response(_require(store, DocumentKind.INVOICE, document_id))


@invoice_router.post("/{document_id}/mark-viewed", response_model=InvoiceResponse)
def mark_invoice_viewed(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.INVOICE, document_id, "mark_viewed")


@invoice_router.post("/{document_id}/cancel", response_model=InvoiceResponse)
def cancel_invoice(document_id: UUID, store: StoreDep) -> Any:
    return _apply_action(store, DocumentKind.INVOICE, document_id, "cancel")


@invoice_router.post("/{document_id}/mark-paid", response_model=InvoiceResponse)
def mark_invoice_paid(
    document_id: UUID, payload: MarkPaidRequest, store: StoreDep
) -> Any:
    _require(store, DocumentKind.INVOICE, document_id)
    store.mark_invoice_paid(document_id, PaymentMethod(payload.method))
    return _to_response(_require(store, DocumentKind.INVOICE, document_id))


@invoice_router.post(
    "/{document_id}/payments",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_payment(
    document_id: UUID, payload: PaymentCreate, store: StoreDep
) -> CreatedResponse:
    payment_id = store.add_payment(document_id, payload.model_dump(exclude_none=True))
    if payment_id is None:
        raise DocumentNotFoundError(DocumentKind.INVOICE.value, document_id)
    return CreatedResponse(id=payment_id)


@invoice_router.patch(
    "/{document_id}/payments/{payment_id}", response_model=InvoiceResponse
)
def update_payment(
    document_id: UUID,
    payment_id: UUID,
    payload: PaymentUpdate,
    store: StoreDep,
) -> Any:
    _require(store, DocumentKind.INVOICE, document_id)
    if not store.update_payment(
        document_id, payment_id, **payload.model_dump(exclude_none=True)
    ):
        raise PaymentNotFoundError(document_id, payment_id)
    return _to_response(_require(store, DocumentKind.INVOICE, document_id))


@invoice_router.delete(
    "/{document_id}/payments/{payment_id}", response_model=InvoiceResponse
)
def delete_payment(document_id: UUID, payment_id: UUID, store: StoreDep) -> Any:
    _require(store, DocumentKind.INVOICE, document_id)
    if not store.delete_payment(document_id, payment_id):
        raise PaymentNotFoundError(document_id, payment_id)
    return _to_response(_require(store, DocumentKind.INVOICE, document_id))


__all__ = [
    "estimate_router",
    "health_router",
    "invoice_router",
    "work_order_router",
]

"""FastAPI application for estimates, work orders and invoices."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from fieldwork_billing.api.routes import (
    estimate_router,
    health_router,
    invoice_router,
    work_order_router,
)
from fieldwork_billing.config import get_settings
from fieldwork_billing.container import get_container, reset_container
from fieldwork_billing.exceptions import FieldworkBillingError
from fieldwork_billing.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings)

    store = get_container().document_store
    logger.info(
        "api_started",
        environment=settings.environment,
        database=str(settings.sqlite_path),
        documents=len(store.estimates) + len(store.work_orders) + len(store.invoices),
    )
    try:
        yield
    finally:
        # Autosave may be off; write whatever is pending before the
        # connection goes away.
        saved = store.flush()
        logger.info("api_stopped", flushed=saved)
        reset_container()


async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line of a request with its id, echoed back as a header."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
    bind_context(request_id=request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
        logger.debug("request_handled", status_code=response.status_code)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        clear_context()


async def billing_error_handler(
    request: Request, exc: FieldworkBillingError
) -> JSONResponse:
    level = logger.error if exc.status_code >= 500 else logger.info
    level("request_rejected", error_code=exc.error_code, **exc.context)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Estimates, work orders and invoices for field-service contractors",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.middleware("http")(request_context_middleware)
    app.add_exception_handler(FieldworkBillingError, billing_error_handler)  # type: ignore[arg-type]

    for router in (health_router, estimate_router, work_order_router, invoice_router):
        app.include_router(router)
    return app


app = create_app()

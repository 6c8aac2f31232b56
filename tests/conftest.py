from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from fieldwork_billing.config import Environment, Settings
from fieldwork_billing.domain.documents import Estimate, Invoice, LineItem, WorkOrder
from fieldwork_billing.domain.value_objects import LineItemType
from fieldwork_billing.repositories.memory import InMemoryDocumentRepository
from fieldwork_billing.services.conversion import ConversionService
from fieldwork_billing.services.document_store import DocumentStore


class FakeClock:
    """Settable clock for store tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 9, 0, tzinfo=UTC))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment=Environment.TESTING,
        sqlite_path=":memory:",
        autosave=True,
    )


@pytest.fixture
def repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def store(
    repository: InMemoryDocumentRepository, settings: Settings, clock: FakeClock
) -> DocumentStore:
    return DocumentStore(repository=repository, settings=settings, clock=clock)


@pytest.fixture
def converter(store: DocumentStore, settings: Settings) -> ConversionService:
    return ConversionService(store, settings=settings)


@pytest.fixture
def sample_line_items() -> list[LineItem]:
    """Two taxable units at 50 plus one untaxed 100 labor row."""
    return [
        LineItem(
            description="Shutoff valve",
            quantity=Decimal("2"),
            rate=Decimal("50"),
            type=LineItemType.MATERIAL,
            taxable=True,
        ),
        LineItem(
            description="Installation labor",
            quantity=Decimal("1"),
            rate=Decimal("100"),
            type=LineItemType.LABOR,
            taxable=False,
            order=1,
        ),
    ]


@pytest.fixture
def sample_estimate(sample_line_items: list[LineItem]) -> Estimate:
    return Estimate(
        customer_id="cust-1",
        customer_name="Harper Plumbing Client",
        customer_email="client@example.com",
        service_address="12 Elm Street",
        line_items=sample_line_items,
        tax_rate=Decimal("6"),
        notes="Replace kitchen shutoff",
    )


@pytest.fixture
def sample_work_order(sample_line_items: list[LineItem]) -> WorkOrder:
    return WorkOrder(
        customer_id="cust-2",
        customer_name="Lakeside Apartments",
        line_items=sample_line_items,
        tax_rate=Decimal("6"),
        assigned_to=["Sam"],
    )


@pytest.fixture
def sample_invoice(sample_line_items: list[LineItem]) -> Invoice:
    return Invoice(
        customer_id="cust-3",
        customer_name="Oak Dental",
        line_items=sample_line_items,
        tax_rate=Decimal("6"),
        payment_terms="Net 15",
    )

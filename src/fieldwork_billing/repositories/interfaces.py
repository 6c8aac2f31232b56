from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field

from fieldwork_billing.domain.customers import Customer, Job
from fieldwork_billing.domain.documents import (
    Estimate,
    FinancialDocument,
    Invoice,
    WorkOrder,
)
from fieldwork_billing.domain.value_objects import DocumentKind


@dataclass
class DocumentSnapshot:
    """Point-in-time copy of the three document collections."""

    estimates: list[Estimate] = field(default_factory=list)
    work_orders: list[WorkOrder] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)

    def documents(self, kind: DocumentKind) -> list[FinancialDocument]:
        if kind == DocumentKind.ESTIMATE:
            return list(self.estimates)
        if kind == DocumentKind.WORK_ORDER:
            return list(self.work_orders)
        return list(self.invoices)

    @property
    def document_count(self) -> int:
        return len(self.estimates) + len(self.work_orders) + len(self.invoices)


class DocumentRepository(ABC):
    """Durable storage for document snapshots.

    ``load`` is called once at startup; ``save`` replaces the stored
    collections with the given snapshot.
    """

    @abstractmethod
    def load(self) -> DocumentSnapshot:
        pass

    @abstractmethod
    def save(self, snapshot: DocumentSnapshot) -> None:
        pass


class CustomerDirectory(ABC):
    @abstractmethod
    def find_customer_by_id(self, customer_id: str) -> Customer | None:
        pass

    @abstractmethod
    def find_job_by_id(self, job_id: str) -> Job | None:
        pass


class NumberSequence(ABC):
    """Authoritative source of issued document numbers.

    Used instead of the in-memory collection when several processes create
    documents against the same storage.
    """

    @abstractmethod
    def existing_numbers(self, kind: DocumentKind) -> Iterable[str]:
        pass

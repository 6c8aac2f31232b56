"""In-memory repository, used for tests and throwaway sessions."""

import copy
from typing import Any

from fieldwork_billing.domain.customers import Customer, Job
from fieldwork_billing.repositories.interfaces import (
    CustomerDirectory,
    DocumentRepository,
    DocumentSnapshot,
)
from fieldwork_billing.repositories.serialization import (
    snapshot_from_dict,
    snapshot_to_dict,
)


class InMemoryDocumentRepository(DocumentRepository):
    """Keeps the last saved snapshot in its serialized form.

    Storing the encoded form means a load never hands back objects shared
    with the store that saved them.
    """

    def __init__(self, initial: DocumentSnapshot | None = None) -> None:
        self._data: dict[str, list[dict[str, Any]]] = snapshot_to_dict(
            initial or DocumentSnapshot()
        )
        self.save_count = 0

    def load(self) -> DocumentSnapshot:
        return snapshot_from_dict(copy.deepcopy(self._data))

    def save(self, snapshot: DocumentSnapshot) -> None:
        self._data = snapshot_to_dict(snapshot)
        self.save_count += 1

    @property
    def raw(self) -> dict[str, list[dict[str, Any]]]:
        return copy.deepcopy(self._data)


class InMemoryCustomerDirectory(CustomerDirectory):
    def __init__(
        self,
        customers: list[Customer] | None = None,
        jobs: list[Job] | None = None,
    ) -> None:
        self._customers = {customer.id: customer for customer in customers or []}
        self._jobs = {job.id: job for job in jobs or []}

    def add_customer(self, customer: Customer) -> None:
        self._customers[customer.id] = customer

    def add_job(self, job: Job) -> None:
        self._jobs[job.id] = job

    def find_customer_by_id(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)

    def find_job_by_id(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

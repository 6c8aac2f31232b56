from fieldwork_billing.repositories.interfaces import (
    CustomerDirectory,
    DocumentRepository,
    DocumentSnapshot,
    NumberSequence,
)
from fieldwork_billing.repositories.memory import (
    InMemoryCustomerDirectory,
    InMemoryDocumentRepository,
)
from fieldwork_billing.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteDocumentRepository,
)

__all__ = [
    "CustomerDirectory",
    "DocumentRepository",
    "DocumentSnapshot",
    "InMemoryCustomerDirectory",
    "InMemoryDocumentRepository",
    "NumberSequence",
    "SQLiteDatabase",
    "SQLiteDocumentRepository",
]

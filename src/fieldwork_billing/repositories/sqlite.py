"""SQLite implementation of the document repository."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from fieldwork_billing.domain.value_objects import DocumentKind
from fieldwork_billing.exceptions import StorageError
from fieldwork_billing.logging_config import get_logger
from fieldwork_billing.repositories.interfaces import (
    DocumentRepository,
    DocumentSnapshot,
    NumberSequence,
)
from fieldwork_billing.repositories.serialization import (
    document_from_dict,
    document_to_dict,
)

logger = get_logger(__name__)


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            try:
                self._connection = sqlite3.connect(
                    self._path, check_same_thread=self._check_same_thread
                )
            except sqlite3.Error as e:
                raise StorageError(f"Cannot open database {self._path}: {e}") from e
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- One row per financial document; payload holds the encoded document
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                position INTEGER NOT NULL,
                document_number TEXT NOT NULL,
                customer_id TEXT NOT NULL,
                status TEXT NOT NULL,
                payload TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(kind, document_number)
            );
            CREATE INDEX IF NOT EXISTS idx_documents_kind ON documents(kind, position);
            CREATE INDEX IF NOT EXISTS idx_documents_customer ON documents(customer_id);

            -- Snapshot bookkeeping
            CREATE TABLE IF NOT EXISTS snapshot_meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        conn.commit()

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLiteDocumentRepository(DocumentRepository, NumberSequence):
    """Stores the three document collections in a single table.

    ``save`` rewrites the table inside one transaction so the stored state is
    always a complete snapshot.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def load(self) -> DocumentSnapshot:
        conn = self._db.get_connection()
        try:
            rows = conn.execute(
                "SELECT kind, payload FROM documents ORDER BY kind, position"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read documents: {e}") from e

        snapshot = DocumentSnapshot()
        for row in rows:
            document = document_from_dict(json.loads(row["payload"]))
            kind = DocumentKind(row["kind"])
            if kind == DocumentKind.ESTIMATE:
                snapshot.estimates.append(document)  # type: ignore[arg-type]
            elif kind == DocumentKind.WORK_ORDER:
                snapshot.work_orders.append(document)  # type: ignore[arg-type]
            else:
                snapshot.invoices.append(document)  # type: ignore[arg-type]

        logger.debug("snapshot_loaded", documents=snapshot.document_count)
        return snapshot

    def save(self, snapshot: DocumentSnapshot) -> None:
        rows = []
        for kind in DocumentKind:
            for position, document in enumerate(snapshot.documents(kind)):
                rows.append(
                    (
                        str(document.id),
                        kind.value,
                        position,
                        document.document_number,
                        document.customer_id,
                        document.status.value,  # type: ignore[attr-defined]
                        json.dumps(document_to_dict(document)),
                        document.updated_at.isoformat(),
                    )
                )

        conn = self._db.get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM documents")
                conn.executemany(
                    """
                    INSERT INTO documents (id, kind, position, document_number,
                                           customer_id, status, payload, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
                conn.execute(
                    "INSERT OR REPLACE INTO snapshot_meta (key, value) VALUES (?, ?)",
                    ("saved_at", datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot save documents: {e}") from e

        logger.debug("snapshot_saved", documents=len(rows))

    def existing_numbers(self, kind: DocumentKind) -> Iterable[str]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT document_number FROM documents WHERE kind = ?", (kind.value,)
        ).fetchall()
        return [row["document_number"] for row in rows]

    def last_saved_at(self) -> datetime | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT value FROM snapshot_meta WHERE key = 'saved_at'"
        ).fetchone()
        if row is None:
            return None
        return datetime.fromisoformat(row["value"])

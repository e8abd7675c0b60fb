"""SQLite-backed document store.

Keeps every record in one local database file (``data/documents.db`` by
default). A single connection is shared by all pipeline threads and guarded
by a lock, so each put and delete is one atomic statement.
"""

import sqlite3
import threading
from pathlib import Path

from docvault.database.models import DocumentRecord
from docvault.database.repositories.base import (
    EXTRACTION_COLUMNS,
    RECORD_COLUMNS,
    BaseDocumentStore,
    record_from_row,
    record_to_row,
)
from docvault.logging.logger import Log

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id                     TEXT    PRIMARY KEY,
    owner_id               TEXT    NOT NULL,
    name                   TEXT    NOT NULL,
    mime_type              TEXT    NOT NULL,
    size_bytes             INTEGER NOT NULL,
    raw_content            BLOB    NOT NULL,
    category               TEXT    NOT NULL,
    extracted_text         TEXT    NOT NULL DEFAULT '',
    extraction_method      TEXT    NOT NULL DEFAULT 'none',
    extraction_error       TEXT,
    page_count             INTEGER NOT NULL DEFAULT 0,
    processing_duration_ms INTEGER NOT NULL DEFAULT 0,
    uploaded_at            TEXT    NOT NULL,
    updated_at             TEXT
);
"""

_CREATE_INDEX_SQL = "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents(owner_id);"

_COLUMNS = ", ".join(RECORD_COLUMNS)
_PLACEHOLDERS = ", ".join(":" + column for column in RECORD_COLUMNS)
_UPDATES = ", ".join(
    column + " = excluded." + column for column in RECORD_COLUMNS if column != "id"
)

_UPSERT_SQL = f"""\
INSERT INTO documents ({_COLUMNS})
VALUES ({_PLACEHOLDERS})
ON CONFLICT(id)
DO UPDATE SET {_UPDATES};
"""

_UPDATE_EXTRACTION_SQL = (
    "UPDATE documents SET "
    + ", ".join(column + " = :" + column for column in EXTRACTION_COLUMNS)
    + " WHERE id = :id AND owner_id = :owner_id;"
)

_SELECT_SQL = f"SELECT {_COLUMNS} FROM documents WHERE id = ?;"

_SELECT_BY_OWNER_SQL = (
    f"SELECT {_COLUMNS} FROM documents WHERE owner_id = ? ORDER BY uploaded_at DESC, id;"
)

_DELETE_SQL = "DELETE FROM documents WHERE id = ? AND owner_id = ?;"


class SqliteDocumentStore(BaseDocumentStore):
    """Document store persisted to a local SQLite file."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def initialize(self) -> None:
        """Open the database file and create the documents table."""
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute(_CREATE_TABLE_SQL)
                conn.execute(_CREATE_INDEX_SQL)
        Log.info(f"Document store ready at {self._db_path}")

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _save(self, record: DocumentRecord) -> None:
        with self._lock:
            conn = self._connection()
            with conn:
                conn.execute(_UPSERT_SQL, self._row(record))

    def _update_extraction(self, record: DocumentRecord) -> bool:
        with self._lock:
            conn = self._connection()
            with conn:
                cursor = conn.execute(_UPDATE_EXTRACTION_SQL, self._row(record))
        return cursor.rowcount > 0

    def _find(self, document_id: str) -> DocumentRecord | None:
        with self._lock:
            row = self._connection().execute(_SELECT_SQL, (document_id,)).fetchone()
        return None if row is None else record_from_row(row)

    def _find_by_owner(self, owner_id: str) -> list[DocumentRecord]:
        with self._lock:
            rows = self._connection().execute(_SELECT_BY_OWNER_SQL, (owner_id,)).fetchall()
        return [record_from_row(row) for row in rows]

    def _remove(self, document_id: str, owner_id: str) -> bool:
        with self._lock:
            conn = self._connection()
            with conn:
                cursor = conn.execute(_DELETE_SQL, (document_id, owner_id))
        return cursor.rowcount > 0

    @staticmethod
    def _row(record: DocumentRecord) -> dict[str, object]:
        row = record_to_row(record)
        row["uploaded_at"] = record.uploaded_at.isoformat()
        row["updated_at"] = record.updated_at.isoformat() if record.updated_at else None
        return row

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            self._conn = conn
        return self._conn

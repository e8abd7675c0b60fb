"""PostgreSQL-backed document store on the shared psycopg pool."""

from psycopg.rows import dict_row

from docvault.database.connection import close_pool, get_connection
from docvault.database.models import DocumentRecord
from docvault.database.repositories.base import (
    EXTRACTION_COLUMNS,
    RECORD_COLUMNS,
    BaseDocumentStore,
    record_from_row,
    record_to_row,
)

_COLUMNS = ", ".join(RECORD_COLUMNS)
_PLACEHOLDERS = ", ".join("%(" + column + ")s" for column in RECORD_COLUMNS)
_UPDATES = ", ".join(
    column + " = EXCLUDED." + column for column in RECORD_COLUMNS if column != "id"
)
_EXTRACTION_UPDATES = ", ".join(column + " = %(" + column + ")s" for column in EXTRACTION_COLUMNS)


class PostgresDocumentStore(BaseDocumentStore):
    """Database operations for the documents table."""

    def initialize(self) -> None:
        """Create the documents table and its owner index."""
        with get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id                     TEXT PRIMARY KEY,
                    owner_id               TEXT NOT NULL,
                    name                   TEXT NOT NULL,
                    mime_type              TEXT NOT NULL,
                    size_bytes             BIGINT NOT NULL,
                    raw_content            BYTEA NOT NULL,
                    category               TEXT NOT NULL,
                    extracted_text         TEXT NOT NULL DEFAULT '',
                    extraction_method      TEXT NOT NULL DEFAULT 'none',
                    extraction_error       TEXT,
                    page_count             INTEGER NOT NULL DEFAULT 0,
                    processing_duration_ms BIGINT NOT NULL DEFAULT 0,
                    uploaded_at            TIMESTAMPTZ NOT NULL,
                    updated_at             TIMESTAMPTZ
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents (owner_id)"
            )
            conn.commit()

    def _save(self, record: DocumentRecord) -> None:
        with get_connection() as conn:
            conn.execute(
                f"""
                INSERT INTO documents ({_COLUMNS})
                VALUES ({_PLACEHOLDERS})
                ON CONFLICT (id) DO UPDATE SET {_UPDATES}
                """,
                record_to_row(record),
            )
            conn.commit()

    def _update_extraction(self, record: DocumentRecord) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    UPDATE documents
                    SET {_EXTRACTION_UPDATES}
                    WHERE id = %(id)s AND owner_id = %(owner_id)s
                    """,
                    record_to_row(record),
                )
                updated = cur.rowcount
            conn.commit()
        return updated > 0

    def _find(self, document_id: str) -> DocumentRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return record_from_row(row)

    def _find_by_owner(self, owner_id: str) -> list[DocumentRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM documents
                    WHERE owner_id = %s
                    ORDER BY uploaded_at DESC, id
                    """,
                    (owner_id,),
                )
                rows = cur.fetchall()

        return [record_from_row(row) for row in rows]

    def _remove(self, document_id: str, owner_id: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM documents WHERE id = %s AND owner_id = %s",
                    (document_id, owner_id),
                )
                deleted = cur.rowcount
            conn.commit()
        return deleted > 0

    def close(self) -> None:
        close_pool()

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from docvault.classifier.format_classifier import FormatCategory
from docvault.database.access import check_access
from docvault.database.exceptions import DocumentNotFoundError, StorageWriteError
from docvault.database.models import DeleteResult, DocumentRecord, ExtractionMethod
from docvault.logging.logger import Log

RECORD_COLUMNS: tuple[str, ...] = (
    "id",
    "owner_id",
    "name",
    "mime_type",
    "size_bytes",
    "raw_content",
    "category",
    "extracted_text",
    "extraction_method",
    "extraction_error",
    "page_count",
    "processing_duration_ms",
    "uploaded_at",
    "updated_at",
)

# Columns rewritten by a repeated extraction; provenance and bytes stay put.
EXTRACTION_COLUMNS: tuple[str, ...] = (
    "category",
    "extracted_text",
    "extraction_method",
    "extraction_error",
    "page_count",
    "processing_duration_ms",
    "updated_at",
)


def record_to_row(record: DocumentRecord) -> dict[str, Any]:
    """Flatten a record into column values."""
    return {
        "id": record.id,
        "owner_id": record.owner_id,
        "name": record.name,
        "mime_type": record.mime_type,
        "size_bytes": record.size_bytes,
        "raw_content": record.raw_content,
        "category": record.category.value,
        "extracted_text": record.extracted_text,
        "extraction_method": record.extraction_method.value,
        "extraction_error": record.extraction_error,
        "page_count": record.page_count,
        "processing_duration_ms": record.processing_duration_ms,
        "uploaded_at": record.uploaded_at,
        "updated_at": record.updated_at,
    }


def record_from_row(row: Mapping[str, Any]) -> DocumentRecord:
    """Build a record from a row mapping (dict_row or sqlite3.Row)."""
    return DocumentRecord(
        id=str(row["id"]),
        owner_id=str(row["owner_id"]),
        name=row["name"],
        mime_type=row["mime_type"],
        size_bytes=int(row["size_bytes"]),
        raw_content=bytes(row["raw_content"]),
        category=FormatCategory(row["category"]),
        extracted_text=row["extracted_text"] or "",
        extraction_method=ExtractionMethod(row["extraction_method"]),
        extraction_error=row["extraction_error"],
        page_count=int(row["page_count"]),
        processing_duration_ms=int(row["processing_duration_ms"]),
        uploaded_at=_as_datetime(row["uploaded_at"]),
        updated_at=_as_datetime(row["updated_at"]) if row["updated_at"] is not None else None,
    )


def _as_datetime(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class BaseDocumentStore(ABC):
    """Owner-scoped CRUD over document records.

    Backends implement the unscoped primitives; every public read, delete and
    export goes through :func:`check_access` here.
    """

    def initialize(self) -> None:
        """Create the schema if it does not exist."""

    def close(self) -> None:
        """Release backend resources."""

    def put(self, record: DocumentRecord) -> None:
        """Insert or overwrite a record by id. No access check.

        Raises:
            StorageWriteError: if the backend rejects the write.
        """
        try:
            self._save(record)
        except StorageWriteError:
            raise
        except Exception as exc:
            raise StorageWriteError(f"Failed to store document {record.id}: {exc}") from exc
        Log.info(
            f"Stored document {record.id}",
            owner=record.owner_id,
            method=record.extraction_method.value,
            chars=len(record.extracted_text),
        )

    def update_extraction(self, record: DocumentRecord) -> None:
        """Overwrite the extraction fields of a record that still exists.

        Never recreates a row, so a record deleted while it was being
        re-extracted stays deleted.

        Raises:
            DocumentNotFoundError: if the record is gone or changed owner.
            StorageWriteError: if the backend rejects the write.
        """
        try:
            updated = self._update_extraction(record)
        except StorageWriteError:
            raise
        except Exception as exc:
            raise StorageWriteError(f"Failed to update document {record.id}: {exc}") from exc
        if not updated:
            raise DocumentNotFoundError(f"Document {record.id} not found")
        Log.info(
            f"Updated extraction of document {record.id}",
            owner=record.owner_id,
            method=record.extraction_method.value,
            chars=len(record.extracted_text),
        )

    def get(self, document_id: str, owner_id: str) -> DocumentRecord:
        """Return the caller's record.

        Raises:
            DocumentNotFoundError: if the id is absent.
            AccessDeniedError: if the record belongs to another owner.
        """
        return check_access(self._find(document_id), document_id, owner_id)

    def list_all(self, owner_id: str) -> list[DocumentRecord]:
        """All records of ``owner_id``, newest first."""
        return self._find_by_owner(owner_id)

    def delete(self, document_id: str, owner_id: str) -> None:
        """Delete the caller's record.

        Raises:
            DocumentNotFoundError: if the id is absent.
            AccessDeniedError: if the record belongs to another owner.
        """
        check_access(self._find(document_id), document_id, owner_id)
        if not self._remove(document_id, owner_id):
            raise DocumentNotFoundError(f"Document {document_id} not found")
        Log.info(f"Deleted document {document_id}", owner=owner_id)

    def delete_many(self, document_ids: Iterable[str], owner_id: str) -> list[DeleteResult]:
        """Best-effort bulk delete; one result per id, in input order."""
        results: list[DeleteResult] = []
        for document_id in document_ids:
            try:
                self.delete(document_id, owner_id)
            except Exception as exc:
                Log.warning(f"Could not delete document {document_id}: {exc}", owner=owner_id)
                results.append(DeleteResult(id=document_id, success=False, error=str(exc)))
            else:
                results.append(DeleteResult(id=document_id, success=True))
        return results

    def export(self, document_id: str, owner_id: str) -> dict[str, object]:
        """JSON-serializable snapshot of the caller's record."""
        return self.get(document_id, owner_id).snapshot()

    @abstractmethod
    def _save(self, record: DocumentRecord) -> None:
        """Upsert a record by id."""

    @abstractmethod
    def _update_extraction(self, record: DocumentRecord) -> bool:
        """Rewrite the extraction columns of an existing owned row; True if one matched."""

    @abstractmethod
    def _find(self, document_id: str) -> DocumentRecord | None:
        """Fetch a record by id regardless of owner."""

    @abstractmethod
    def _find_by_owner(self, owner_id: str) -> list[DocumentRecord]:
        """Fetch all records of an owner, newest first."""

    @abstractmethod
    def _remove(self, document_id: str, owner_id: str) -> bool:
        """Delete a record if it still belongs to ``owner_id``; True if a row went away."""

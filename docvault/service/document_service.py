"""Public operations of the document vault.

Everything the surrounding application needs (upload, read, list, delete,
export, download) goes through :class:`DocumentService`. Every operation
that takes an ``owner_id`` is owner-scoped by the store.
"""

from collections.abc import Iterable

from docvault.config.settings import Settings
from docvault.database.models import (
    DeleteResult,
    DocumentMetadata,
    DocumentRecord,
    RawFile,
    TextResult,
)
from docvault.database.repositories.base import BaseDocumentStore
from docvault.database.repositories.factory import DocumentStoreFactory
from docvault.logging.logger import Log
from docvault.ocr.engine_handle import RecognitionEngineHandle
from docvault.ocr.factory import RecognitionEngineFactory
from docvault.processor.cancellation import CancellationToken
from docvault.processor.processor import IngestionPipeline, build_pipeline
from docvault.processor.progress import ProgressCallback


class DocumentService:
    """Facade over the ingestion pipeline and the owner-scoped store."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        store: BaseDocumentStore,
        engine_handle: RecognitionEngineHandle | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._store = store
        self._engine_handle = engine_handle

    def ingest(
        self,
        data: bytes,
        mime_type: str,
        name: str,
        owner_id: str,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DocumentRecord:
        """Store an upload and extract its text.

        Raises:
            StorageWriteError: if the record cannot be written.
        """
        return self._pipeline.ingest(
            data,
            mime_type,
            name,
            owner_id,
            on_progress=on_progress,
            cancel_token=cancel_token,
        )

    def get_text(self, document_id: str, owner_id: str) -> TextResult:
        record = self._store.get(document_id, owner_id)
        return TextResult(
            text=record.extracted_text,
            method=record.extraction_method,
            has_text=record.has_text,
            uploaded_at=record.uploaded_at,
        )

    def list_documents(self, owner_id: str) -> list[DocumentMetadata]:
        return [record.metadata() for record in self._store.list_all(owner_id)]

    def delete_document(self, document_id: str, owner_id: str) -> None:
        self._store.delete(document_id, owner_id)

    def delete_documents(self, document_ids: Iterable[str], owner_id: str) -> list[DeleteResult]:
        results = self._store.delete_many(document_ids, owner_id)
        failed = sum(1 for result in results if not result.success)
        Log.info(f"Bulk delete: {len(results) - failed} deleted, {failed} failed", owner=owner_id)
        return results

    def export_document(self, document_id: str, owner_id: str) -> dict[str, object]:
        return self._store.export(document_id, owner_id)

    def fetch_raw_file(self, document_id: str, owner_id: str) -> RawFile:
        record = self._store.get(document_id, owner_id)
        return RawFile(content=record.raw_content, mime_type=record.mime_type, name=record.name)

    def re_extract(
        self,
        document_id: str,
        owner_id: str,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DocumentRecord:
        """Run extraction again over the stored bytes of an owned document."""
        record = self._store.get(document_id, owner_id)
        return self._pipeline.re_extract(
            record, on_progress=on_progress, cancel_token=cancel_token
        )

    def close(self) -> None:
        """Release the recognition engine and the store."""
        if self._engine_handle is not None:
            self._engine_handle.close()
        self._store.close()


def build_document_service(settings: Settings) -> DocumentService:
    """Build a ready DocumentService: store initialized, engine loaded lazily."""
    store = DocumentStoreFactory.create(settings)
    store.initialize()
    engine_handle = RecognitionEngineFactory.create_handle(settings)
    pipeline = build_pipeline(settings, store, engine_handle)
    Log.info(
        "Document service ready",
        storage=settings.storage_backend,
        pdf_engine=settings.pdf_engine,
        ocr_engine=settings.ocr_engine,
    )
    return DocumentService(pipeline, store, engine_handle)

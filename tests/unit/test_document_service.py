from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

from docvault.config.settings import Settings
from docvault.database.models import DeleteResult, DocumentRecord, ExtractionMethod
from docvault.database.repositories.base import BaseDocumentStore
from docvault.ocr.engine_handle import RecognitionEngineHandle
from docvault.processor.processor import IngestionPipeline
from docvault.service.document_service import DocumentService, build_document_service


def _make_record() -> DocumentRecord:
    return DocumentRecord(
        id="doc-1",
        owner_id="alice",
        name="hello.txt",
        mime_type="text/plain",
        size_bytes=5,
        raw_content=b"Hello",
        uploaded_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        extracted_text="Hello",
        extraction_method=ExtractionMethod.DIRECT_TEXT,
    )


def _make_service() -> tuple[DocumentService, MagicMock, MagicMock, MagicMock]:
    pipeline = MagicMock(spec=IngestionPipeline)
    store = MagicMock(spec=BaseDocumentStore)
    handle = MagicMock(spec=RecognitionEngineHandle)
    return DocumentService(pipeline, store, handle), pipeline, store, handle


class TestDocumentServiceDelegation:
    def test_ingest_runs_pipeline(self) -> None:
        service, pipeline, _store, _handle = _make_service()
        callback = MagicMock()

        service.ingest(b"Hello", "text/plain", "hello.txt", "alice", on_progress=callback)

        pipeline.ingest.assert_called_once_with(
            b"Hello", "text/plain", "hello.txt", "alice", on_progress=callback, cancel_token=None
        )

    def test_get_text_maps_record(self) -> None:
        service, _pipeline, store, _handle = _make_service()
        store.get.return_value = _make_record()

        result = service.get_text("doc-1", "alice")

        store.get.assert_called_once_with("doc-1", "alice")
        assert (result.text, result.method, result.has_text) == (
            "Hello",
            ExtractionMethod.DIRECT_TEXT,
            True,
        )

    def test_fetch_raw_file(self) -> None:
        service, _pipeline, store, _handle = _make_service()
        store.get.return_value = _make_record()

        raw = service.fetch_raw_file("doc-1", "alice")

        assert (raw.content, raw.mime_type, raw.name) == (b"Hello", "text/plain", "hello.txt")

    def test_list_documents_returns_metadata(self) -> None:
        service, _pipeline, store, _handle = _make_service()
        store.list_all.return_value = [_make_record()]

        listed = service.list_documents("alice")

        assert [m.id for m in listed] == ["doc-1"]

    def test_delete_documents_returns_store_results(self) -> None:
        service, _pipeline, store, _handle = _make_service()
        store.delete_many.return_value = [DeleteResult(id="a", success=True)]

        assert service.delete_documents(["a"], "alice") == [DeleteResult(id="a", success=True)]

    def test_re_extract_loads_owned_record_first(self) -> None:
        service, pipeline, store, _handle = _make_service()
        record = _make_record()
        store.get.return_value = record

        service.re_extract("doc-1", "alice")

        store.get.assert_called_once_with("doc-1", "alice")
        pipeline.re_extract.assert_called_once_with(record, on_progress=None, cancel_token=None)

    def test_close_releases_engine_and_store(self) -> None:
        service, _pipeline, store, handle = _make_service()
        service.close()
        handle.close.assert_called_once()
        store.close.assert_called_once()


class TestBuildDocumentService:
    def test_builds_working_service(self, tmp_path: Path) -> None:
        settings = Settings(_env_file=None, sqlite_path=str(tmp_path / "documents.db"))
        service = build_document_service(settings)
        try:
            record = service.ingest(b"Hello world", "text/plain", "hello.txt", "alice")
            assert service.get_text(record.id, "alice").text == "Hello world"
        finally:
            service.close()
        assert (tmp_path / "documents.db").exists()

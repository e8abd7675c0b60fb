from pathlib import Path
from unittest.mock import MagicMock

from docvault.config.settings import Settings
from docvault.database.models import ExtractionMethod
from docvault.database.repositories.sqlite_document_store import SqliteDocumentStore
from docvault.ocr.engine_handle import RecognitionEngineHandle
from docvault.processor.processor import build_pipeline
from docvault.service.document_service import DocumentService
from docvault.worker.job_runner import JobRunner
from docvault.worker.worker import Worker


class TestInboxWorker:
    def test_processes_dropped_files(
        self,
        tmp_path: Path,
        engine_handle: RecognitionEngineHandle,
        sample_pdf_bytes: bytes,
        text_png_bytes: bytes,
    ) -> None:
        inbox = tmp_path / "inbox"
        (inbox / "alice").mkdir(parents=True)
        (inbox / "bob").mkdir()
        (inbox / "alice" / "notes.txt").write_bytes(b"Meeting notes")
        (inbox / "alice" / "short.pdf").write_bytes(sample_pdf_bytes)
        (inbox / "bob" / "scan.png").write_bytes(text_png_bytes)

        settings = Settings(
            _env_file=None,
            sqlite_path=str(tmp_path / "documents.db"),
            inbox_dir=str(inbox),
            inbox_poll_interval_seconds=0,
            max_concurrent_ingestions=2,
        )
        store = SqliteDocumentStore(settings.sqlite_path)
        store.initialize()
        pipeline = build_pipeline(settings, store, engine_handle)
        service = DocumentService(pipeline, store, engine_handle)

        Worker(JobRunner(service), settings).run(max_jobs=3)

        alice = {m.name: m for m in service.list_documents("alice")}
        bob = service.list_documents("bob")
        assert alice["notes.txt"].extraction_method is ExtractionMethod.DIRECT_TEXT
        assert alice["short.pdf"].extraction_method is ExtractionMethod.RECOGNITION
        assert [m.extraction_method for m in bob] == [ExtractionMethod.RECOGNITION]
        assert list((inbox / "alice").iterdir()) == []
        service.close()

    def test_failed_store_moves_file_aside(self, tmp_path: Path) -> None:
        inbox = tmp_path / "inbox"
        (inbox / "alice").mkdir(parents=True)
        (inbox / "alice" / "notes.txt").write_bytes(b"Meeting notes")
        service = MagicMock(spec=DocumentService)
        service.ingest.side_effect = OSError("read-only file system")
        settings = MagicMock(
            inbox_dir=str(inbox), inbox_poll_interval_seconds=0, max_concurrent_ingestions=1
        )

        Worker(JobRunner(service), settings).run(max_jobs=1)

        assert (inbox / "alice" / ".failed" / "notes.txt").exists()

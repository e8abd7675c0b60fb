import uuid
from datetime import datetime, timezone

from docvault.classifier.format_classifier import mime_from_name
from docvault.config.settings import Settings
from docvault.database.models import DocumentRecord
from docvault.database.repositories.base import BaseDocumentStore
from docvault.logging.logger import Log
from docvault.ocr.engine_handle import RecognitionEngineHandle
from docvault.ocr.recognition_extractor import RecognitionExtractor
from docvault.pdf.factory import PdfExtractorFactory
from docvault.processor.cancellation import CancellationToken
from docvault.processor.pipeline import PipelineContext, PipelineStep
from docvault.processor.progress import ProgressCallback, ProgressReporter
from docvault.processor.steps import ClassifyStep, ExtractStep, PersistStep
from docvault.text.plain_text_reader import PlainTextReader

_DEFAULT_MIME_TYPE = "application/octet-stream"


class IngestionPipeline:
    """Orchestrates the document ingestion pipeline.

    Pipeline: classify -> extract (with recognition fallback) -> persist.
    Holds no per-document state, so one instance serves concurrent runs.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    def ingest(
        self,
        data: bytes,
        mime_type: str,
        name: str,
        owner_id: str,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DocumentRecord:
        """Run the full pipeline for a new upload and return the stored record.

        Raises:
            StorageWriteError: if the record cannot be persisted. No other
                error escapes; extraction problems degrade the record instead.
        """
        record = DocumentRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            mime_type=mime_type or mime_from_name(name) or _DEFAULT_MIME_TYPE,
            size_bytes=len(data),
            raw_content=bytes(data),
            uploaded_at=datetime.now(timezone.utc),
        )
        Log.info(
            f"Ingesting '{name}' ({record.size_bytes} bytes, {record.mime_type})",
            document=record.id,
            owner=owner_id,
        )
        return self._run(record, on_progress, cancel_token, existing=False)

    def re_extract(
        self,
        record: DocumentRecord,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DocumentRecord:
        """Classify and extract a stored record again, overwriting its text.

        Identity, owner, raw bytes and upload time are kept as they are.
        A record deleted while the run is in flight is not brought back.

        Raises:
            DocumentNotFoundError: if the record was deleted meanwhile.
        """
        Log.info(f"Re-extracting document {record.id}", owner=record.owner_id)
        return self._run(record, on_progress, cancel_token, existing=True)

    def _run(
        self,
        record: DocumentRecord,
        on_progress: ProgressCallback | None,
        cancel_token: CancellationToken | None,
        existing: bool,
    ) -> DocumentRecord:
        context = PipelineContext(
            record=record,
            reporter=ProgressReporter(on_progress, document_id=record.id),
            cancel_token=cancel_token,
            existing=existing,
        )
        context.reporter.report("Received", 0)
        for step in self._steps:
            context = step.run(context)

        stored = context.record
        Log.info(
            f"Document {stored.id} ingested",
            method=stored.extraction_method.value,
            chars=len(stored.extracted_text),
            duration_ms=stored.processing_duration_ms,
        )
        return stored


def build_pipeline(
    settings: Settings,
    store: BaseDocumentStore,
    engine_handle: RecognitionEngineHandle,
) -> IngestionPipeline:
    """Build an IngestionPipeline with all required adapters."""
    pdf_extractor = PdfExtractorFactory.create(settings)
    rasterizer = PdfExtractorFactory.create_rasterizer(settings)
    stage_timeout = settings.stage_timeout_seconds if settings.stage_timeout_seconds > 0 else None
    return IngestionPipeline(
        [
            ClassifyStep(),
            ExtractStep(
                pdf_extractor=pdf_extractor,
                recognition_extractor=RecognitionExtractor(engine_handle, rasterizer),
                text_reader=PlainTextReader(),
                stage_timeout_seconds=stage_timeout,
            ),
            PersistStep(store),
        ]
    )

import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from docvault.classifier.format_classifier import (
    FormatCategory,
    charset_from_mime,
    classify,
    is_permissive_text,
)
from docvault.database.exceptions import StoreError
from docvault.database.models import ExtractionMethod
from docvault.database.repositories.base import BaseDocumentStore
from docvault.logging.logger import Log
from docvault.ocr.recognition_extractor import RecognitionExtractor
from docvault.pdf.base import BasePdfExtractor, StructuredExtraction
from docvault.pdf.exceptions import PdfExtractionError
from docvault.processor.cancellation import ExtractionControl
from docvault.processor.exceptions import ExtractionFailed, ExtractionInterrupted
from docvault.processor.models import PipelineState
from docvault.processor.pipeline import PipelineContext, PipelineStep
from docvault.processor.progress import CLASSIFY_BAND, EXTRACT_BAND, PERSIST_BAND
from docvault.text.plain_text_reader import PlainTextReader

# Structured parsing reports into the first part of the extraction band,
# the recognition fallback into the rest.
_FALLBACK_START = 45

_STAGE_METHODS: dict[FormatCategory, ExtractionMethod] = {
    FormatCategory.STRUCTURED_DOCUMENT: ExtractionMethod.STRUCTURED_PARSE,
    FormatCategory.IMAGE: ExtractionMethod.RECOGNITION,
    FormatCategory.PLAIN_TEXT: ExtractionMethod.DIRECT_TEXT,
}


@dataclass(frozen=True)
class _Outcome:
    text: str
    method: ExtractionMethod
    page_count: int = 0
    error: str | None = None


class ClassifyStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        record = context.record
        context.reporter.report("Classifying document", CLASSIFY_BAND[0])
        context.category = classify(record.mime_type, record.name)
        if context.category is FormatCategory.UNSUPPORTED:
            Log.warning(
                f"Unsupported format '{record.mime_type}', storing without text",
                document=record.id,
            )
            context.advance(PipelineState.REJECTED)
        else:
            context.advance(PipelineState.CLASSIFIED)
        context.reporter.report(f"Classified as {context.category.value}", CLASSIFY_BAND[1])
        return context


class ExtractStep(PipelineStep):
    """Runs the extractor for the document's category, with OCR fallback.

    Never raises for extractor problems: errors become a ``failed`` outcome,
    interruptions keep whatever text was read before the stop.
    """

    def __init__(
        self,
        pdf_extractor: BasePdfExtractor,
        recognition_extractor: RecognitionExtractor,
        text_reader: PlainTextReader,
        stage_timeout_seconds: float | None = None,
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._recognition_extractor = recognition_extractor
        self._text_reader = text_reader
        self._stage_timeout_seconds = stage_timeout_seconds

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.state is PipelineState.REJECTED:
            context.extracted_text = ""
            context.extraction_method = ExtractionMethod.NONE
            context.extraction_error = None
            context.page_count = 0
            context.reporter.report("Skipped extraction for unsupported format", EXTRACT_BAND[1])
            return context

        context.advance(PipelineState.EXTRACTING)
        started = time.monotonic()
        try:
            outcome = self._dispatch(context)
        except ExtractionInterrupted as exc:
            outcome = self._from_interruption(exc, _STAGE_METHODS[context.category])
        except Exception as exc:
            failure = (
                exc
                if isinstance(exc, ExtractionFailed)
                else ExtractionFailed(f"{context.category.value} extraction failed: {exc}")
            )
            Log.error(failure.reason, document=context.record.id)
            outcome = _Outcome(text="", method=ExtractionMethod.FAILED, error=failure.reason)

        if not outcome.text and outcome.error is None:
            # Only a stage that produced text may claim the record
            Log.info("No stage produced text", document=context.record.id)
            outcome = _Outcome(text="", method=ExtractionMethod.NONE)

        context.extracted_text = outcome.text
        context.extraction_method = outcome.method
        context.extraction_error = outcome.error
        context.page_count = outcome.page_count
        Log.info(
            f"Extracted {len(outcome.text)} chars from document {context.record.id}",
            method=outcome.method.value,
            pages=outcome.page_count,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )

        if outcome.method is ExtractionMethod.FAILED:
            context.advance(PipelineState.EXTRACTION_FAILED)
            context.reporter.report("Extraction failed", EXTRACT_BAND[1], error=outcome.error)
        else:
            context.advance(PipelineState.EXTRACTED)
            context.reporter.report("Extraction complete", EXTRACT_BAND[1], error=outcome.error)
        return context

    def _dispatch(self, context: PipelineContext) -> _Outcome:
        if context.category is FormatCategory.PLAIN_TEXT:
            return self._read_plain_text(context)
        if context.category is FormatCategory.IMAGE:
            return self._recognize_image(context)
        return self._extract_structured(context)

    def _read_plain_text(self, context: PipelineContext) -> _Outcome:
        record = context.record
        control = self._control("plain-text", context)
        if control.should_stop():
            raise control.interrupted()
        context.reporter.report("Reading text", EXTRACT_BAND[0])
        text = self._text_reader.read(
            record.raw_content,
            charset=charset_from_mime(record.mime_type),
            permissive=is_permissive_text(record.mime_type, record.name),
        )
        return _Outcome(text=text, method=ExtractionMethod.DIRECT_TEXT, page_count=1 if text else 0)

    def _recognize_image(self, context: PipelineContext) -> _Outcome:
        result = self._recognition_extractor.extract_image(
            context.record.raw_content,
            on_unit=context.reporter.band("Recognizing text", *EXTRACT_BAND),
            control=self._control("recognition", context),
        )
        return _Outcome(
            text=result.text, method=ExtractionMethod.RECOGNITION, page_count=result.unit_count
        )

    def _extract_structured(self, context: PipelineContext) -> _Outcome:
        document_id = context.record.id
        try:
            structured = self._pdf_extractor.extract(
                context.record.raw_content,
                on_page=context.reporter.band("Reading pages", EXTRACT_BAND[0], _FALLBACK_START),
                control=self._control("structured-parse", context),
            )
        except PdfExtractionError as exc:
            Log.warning(
                f"Structured parsing failed, treating as no text: {exc}", document=document_id
            )
            structured = StructuredExtraction(text="", page_count=0, has_meaningful_text=False)

        if structured.has_meaningful_text:
            return _Outcome(
                text=structured.text,
                method=ExtractionMethod.STRUCTURED_PARSE,
                page_count=structured.page_count,
            )

        Log.info(
            f"Structured text below {self._pdf_extractor.threshold} chars, "
            "falling back to recognition",
            document=document_id,
            chars=len(structured.text),
        )
        return self._recognition_fallback(context, structured)

    def _recognition_fallback(
        self, context: PipelineContext, structured: StructuredExtraction
    ) -> _Outcome:
        kept = (
            _Outcome(
                text=structured.text,
                method=ExtractionMethod.STRUCTURED_PARSE,
                page_count=structured.page_count,
            )
            if structured.text
            else None
        )
        try:
            result = self._recognition_extractor.extract_from_pdf(
                context.record.raw_content,
                on_unit=context.reporter.band(
                    "Recognizing pages", _FALLBACK_START, EXTRACT_BAND[1]
                ),
                control=self._control("recognition", context),
            )
        except ExtractionInterrupted as exc:
            if exc.partial_text or kept is None:
                return self._from_interruption(exc, ExtractionMethod.RECOGNITION)
            Log.warning(f"{exc.reason}, keeping structured text", document=context.record.id)
            return replace(kept, error=exc.reason)
        except Exception as exc:
            if kept is None:
                raise
            Log.warning(
                f"Recognition fallback failed, keeping structured text: {exc}",
                document=context.record.id,
            )
            return replace(kept, error=f"recognition fallback failed: {exc}")

        if result.text or kept is None:
            return _Outcome(
                text=result.text, method=ExtractionMethod.RECOGNITION, page_count=result.unit_count
            )
        Log.info(
            "Recognition produced no text, keeping structured text", document=context.record.id
        )
        return kept

    def _control(self, stage: str, context: PipelineContext) -> ExtractionControl:
        return ExtractionControl(
            stage,
            token=context.cancel_token,
            timeout_seconds=self._stage_timeout_seconds,
        )

    @staticmethod
    def _from_interruption(exc: ExtractionInterrupted, method: ExtractionMethod) -> _Outcome:
        Log.warning(f"Extraction interrupted: {exc.reason}", partial_chars=len(exc.partial_text))
        if not exc.partial_text:
            return _Outcome(text="", method=ExtractionMethod.FAILED, error=exc.reason)
        return _Outcome(
            text=exc.partial_text, method=method, page_count=exc.units_done, error=exc.reason
        )


class PersistStep(PipelineStep):
    def __init__(self, store: BaseDocumentStore) -> None:
        self._store = store

    def run(self, context: PipelineContext) -> PipelineContext:
        context.reporter.report("Saving document", PERSIST_BAND[0])
        record = context.record.with_extraction(
            category=context.category,
            extracted_text=context.extracted_text,
            extraction_method=context.extraction_method,
            extraction_error=context.extraction_error,
            page_count=context.page_count,
            processing_duration_ms=int((time.monotonic() - context.started_at) * 1000),
            updated_at=datetime.now(timezone.utc),
        )
        try:
            if context.existing:
                self._store.update_extraction(record)
            else:
                self._store.put(record)
        except StoreError as exc:
            context.reporter.report("Saving failed", context.reporter.percent, error=str(exc))
            raise
        context.record = record
        context.advance(PipelineState.STORED)
        context.reporter.report("Done", PERSIST_BAND[1])
        return context

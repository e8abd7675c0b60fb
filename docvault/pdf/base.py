from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass

from docvault.logging.logger import Log
from docvault.pdf.exceptions import PdfExtractionError
from docvault.processor.cancellation import ExtractionControl
from docvault.processor.exceptions import ExtractionInterrupted

PageCallback = Callable[[int, int], None]

PAGE_MARKER = "--- Page {number} ---"
DEFAULT_MEANINGFUL_TEXT_THRESHOLD = 500


@dataclass(frozen=True)
class StructuredExtraction:
    """Embedded text layer of a structured document."""

    text: str
    page_count: int
    has_meaningful_text: bool


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters.

    Adapters only open the document and yield raw page texts; page markers,
    progress, interruption and the meaningful-text check live here.
    """

    ENGINE_NAME = "pdf"

    def __init__(self, meaningful_text_threshold: int = DEFAULT_MEANINGFUL_TEXT_THRESHOLD) -> None:
        self._threshold = meaningful_text_threshold

    @property
    def threshold(self) -> int:
        return self._threshold

    def extract(
        self,
        pdf_bytes: bytes,
        on_page: PageCallback | None = None,
        control: ExtractionControl | None = None,
    ) -> StructuredExtraction:
        """Extract the embedded text layer of PDF bytes, page by page.

        Args:
            pdf_bytes: Raw PDF file content.
            on_page: Called with ``(pages_done, page_total)`` after each page.
            control: Optional cancellation/deadline checked between pages.

        Returns:
            StructuredExtraction with page-marked text, page count and the
            meaningful-text verdict against the configured threshold.

        Raises:
            PdfExtractionError: if the document structure cannot be parsed.
            ExtractionInterrupted: if ``control`` stops the stage; carries the
                text of the pages already read.
        """
        try:
            return self._collect(pdf_bytes, on_page, control)
        except (PdfExtractionError, ExtractionInterrupted):
            raise
        except Exception as exc:
            raise PdfExtractionError(f"{self.ENGINE_NAME} extraction failed: {exc}") from exc

    @abstractmethod
    def _open_pages(self, pdf_bytes: bytes) -> AbstractContextManager[tuple[int, Iterator[str]]]:
        """Open the document and yield ``(page_count, page_texts)``."""

    def _collect(
        self,
        pdf_bytes: bytes,
        on_page: PageCallback | None,
        control: ExtractionControl | None,
    ) -> StructuredExtraction:
        parts: list[str] = []
        content_length = 0
        with self._open_pages(pdf_bytes) as (page_count, page_texts):
            for number, raw_text in enumerate(page_texts, start=1):
                if control is not None and control.should_stop():
                    raise control.interrupted(self._join(parts), units_done=number - 1)
                page_text = (raw_text or "").strip()
                if page_text:
                    parts.append(f"{PAGE_MARKER.format(number=number)}\n{page_text}")
                    content_length += len(page_text)
                if on_page is not None:
                    on_page(number, page_count)

        text = self._join(parts)
        Log.debug(
            f"{self.ENGINE_NAME} read {page_count} pages, {content_length} chars of content"
        )
        return StructuredExtraction(
            text=text,
            page_count=page_count,
            has_meaningful_text=content_length >= self._threshold,
        )

    @staticmethod
    def _join(parts: list[str]) -> str:
        return "\n\n".join(parts)

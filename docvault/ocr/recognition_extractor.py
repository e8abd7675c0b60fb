from collections.abc import Callable, Sequence
from dataclasses import dataclass

from docvault.logging.logger import Log
from docvault.ocr.engine_handle import RecognitionEngineHandle
from docvault.ocr.exceptions import RecognitionTimeoutError
from docvault.ocr.images import split_frames
from docvault.pdf.base import PAGE_MARKER
from docvault.pdf.rasterizer import PdfRasterizer
from docvault.processor.cancellation import ExtractionControl

UnitCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RecognitionResult:
    """Text recognized over a sequence of images."""

    text: str
    unit_count: int


class RecognitionExtractor:
    """Runs OCR over standalone images or rasterized PDF pages.

    Units are recognized sequentially inside one engine session, so a
    document holds the shared engine from its first page to its last.
    """

    def __init__(self, engine_handle: RecognitionEngineHandle, rasterizer: PdfRasterizer) -> None:
        self._engine_handle = engine_handle
        self._rasterizer = rasterizer

    def extract_image(
        self,
        image_bytes: bytes,
        on_unit: UnitCallback | None = None,
        control: ExtractionControl | None = None,
    ) -> RecognitionResult:
        """Recognize a standalone image; every frame of a multi-frame image is a unit."""
        return self.extract_images(split_frames(image_bytes), on_unit=on_unit, control=control)

    def extract_from_pdf(
        self,
        pdf_bytes: bytes,
        on_unit: UnitCallback | None = None,
        control: ExtractionControl | None = None,
    ) -> RecognitionResult:
        """Rasterize a structured document and recognize each page image.

        Raises:
            PdfRasterizationError: if the pages cannot be rendered.
        """
        pages = self._rasterizer.rasterize(pdf_bytes)
        Log.info(f"Rasterized {len(pages)} pages for recognition")
        return self.extract_images(pages, on_unit=on_unit, control=control)

    def extract_images(
        self,
        units: Sequence[bytes],
        on_unit: UnitCallback | None = None,
        control: ExtractionControl | None = None,
    ) -> RecognitionResult:
        """Recognize each image in order.

        Raises:
            RecognitionError: if the engine fails on a unit.
            ExtractionInterrupted: if ``control`` stops the stage or the engine
                times out; carries the text of the units already recognized.
        """
        total = len(units)
        texts: list[str] = []
        try:
            with self._engine_handle.session(self._remaining(control)) as engine:
                for index, unit in enumerate(units):
                    if control is not None and control.should_stop():
                        raise control.interrupted(self._join(texts, total), units_done=index)
                    try:
                        texts.append(engine.recognize(unit, timeout_seconds=self._remaining(control)))
                    except RecognitionTimeoutError:
                        if control is None:
                            raise
                        raise control.interrupted(self._join(texts, total), units_done=index)
                    if on_unit is not None:
                        on_unit(index + 1, total)
        except RecognitionTimeoutError:
            # Engine stayed busy with another document for the whole stage.
            if control is None:
                raise
            raise control.interrupted("", units_done=0)

        text = self._join(texts, total)
        Log.debug(f"Recognized {len(text)} chars over {total} units")
        return RecognitionResult(text=text, unit_count=total)

    @staticmethod
    def _remaining(control: ExtractionControl | None) -> float | None:
        return None if control is None else control.remaining()

    @staticmethod
    def _join(texts: list[str], total: int) -> str:
        if total <= 1:
            return "\n\n".join(text.strip() for text in texts if text.strip())
        parts = [
            f"{PAGE_MARKER.format(number=number)}\n{text.strip()}"
            for number, text in enumerate(texts, start=1)
            if text.strip()
        ]
        return "\n\n".join(parts)

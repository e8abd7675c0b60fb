import io

import pytesseract
from PIL import Image

from docvault.logging.logger import Log
from docvault.ocr.base import BaseRecognitionEngine
from docvault.ocr.exceptions import (
    RecognitionEngineUnavailableError,
    RecognitionError,
    RecognitionTimeoutError,
)


class TesseractEngine(BaseRecognitionEngine):
    """Recognizes text with Google Tesseract through pytesseract."""

    ENGINE_NAME = "tesseract"

    def __init__(self, language: str = "eng") -> None:
        self._language = language
        self._version: str | None = None

    def load(self) -> None:
        try:
            self._version = str(pytesseract.get_tesseract_version())
        except Exception as exc:
            raise RecognitionEngineUnavailableError(
                f"Tesseract binary is not available: {exc}"
            ) from exc
        Log.info(f"Tesseract {self._version} ready", language=self._language)

    def recognize(self, image_bytes: bytes, timeout_seconds: float | None = None) -> str:
        # pytesseract reads 0 as "no limit", so an exhausted budget stays bounded
        timeout = 0 if timeout_seconds is None else max(timeout_seconds, 0.001)
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                text = pytesseract.image_to_string(
                    image.convert("RGB"),
                    lang=self._language,
                    timeout=timeout,
                )
        except RuntimeError as exc:
            # pytesseract kills the subprocess and raises RuntimeError on timeout
            if "timeout" in str(exc).lower():
                raise RecognitionTimeoutError(
                    f"Tesseract exceeded {timeout_seconds}s"
                ) from exc
            raise RecognitionError(f"Tesseract OCR failed: {exc}") from exc
        except Exception as exc:
            raise RecognitionError(f"Tesseract OCR failed: {exc}") from exc
        return text.strip()

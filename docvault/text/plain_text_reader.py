"""Direct decoding of already-textual uploads.

Decoding order:
1. Byte order mark, which wins over any declared charset.
2. Charset declared on the media type (``text/plain; charset=...``).
3. UTF-8.
4. ICU charset detection over the raw bytes.

Word-processor formats are read permissively: when no candidate decodes
cleanly, undecodable bytes are replaced instead of failing.
"""

import codecs
import unicodedata
from collections.abc import Iterator

from docvault.logging.logger import Log
from docvault.text.exceptions import PlainTextDecodeError

_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

# ICU guesses below this confidence (0-100) are ignored.
_MIN_DETECTION_CONFIDENCE = 10


class PlainTextReader:
    """Decodes raw bytes directly as text. No fallback extraction applies."""

    def read(self, data: bytes, charset: str | None = None, permissive: bool = False) -> str:
        """Decode *data* into NFC-normalized, stripped text.

        Raises:
            PlainTextDecodeError: if no candidate charset decodes the bytes
                and ``permissive`` is false.
        """
        if not data:
            return ""
        for encoding in self._candidates(data, charset):
            try:
                text = data.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                continue
            Log.debug(f"Decoded {len(data)} bytes as {encoding}")
            return self._normalize(text)

        if permissive:
            Log.warning("No charset decoded cleanly, replacing undecodable bytes")
            return self._normalize(data.decode("utf-8", errors="replace"))
        raise PlainTextDecodeError(f"Cannot decode {len(data)} bytes as text")

    def _candidates(self, data: bytes, charset: str | None) -> Iterator[str]:
        bom_encoding = next((enc for bom, enc in _BOMS if data.startswith(bom)), None)
        if bom_encoding is not None:
            yield bom_encoding
        if charset:
            yield charset
        yield "utf-8"
        # ICU only runs once the cheap candidates have failed
        detected = self._detect(data)
        if detected is not None:
            yield detected

    @staticmethod
    def _detect(data: bytes) -> str | None:
        import icu  # type: ignore[import-untyped]

        detector = icu.CharsetDetector()
        detector.setText(data)
        match = detector.detect()
        if match is None or match.getConfidence() < _MIN_DETECTION_CONFIDENCE:
            return None
        return str(match.getName())

    @staticmethod
    def _normalize(text: str) -> str:
        return unicodedata.normalize("NFC", text).strip()

import io
from collections.abc import Iterator
from contextlib import contextmanager

import pdfplumber

from docvault.pdf.base import BasePdfExtractor


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts the text layer of a PDF using pdfplumber."""

    ENGINE_NAME = "pdfplumber"

    @contextmanager
    def _open_pages(self, pdf_bytes: bytes) -> Iterator[tuple[int, Iterator[str]]]:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            yield len(pdf.pages), (page.extract_text() or "" for page in pdf.pages)

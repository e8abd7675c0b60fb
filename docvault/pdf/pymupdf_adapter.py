from collections.abc import Iterator
from contextlib import contextmanager

import pymupdf

from docvault.pdf.base import BasePdfExtractor


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts the text layer of a PDF using PyMuPDF."""

    ENGINE_NAME = "pymupdf"

    @contextmanager
    def _open_pages(self, pdf_bytes: bytes) -> Iterator[tuple[int, Iterator[str]]]:
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            yield doc.page_count, (page.get_text() for page in doc)

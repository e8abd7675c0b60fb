import pymupdf

from docvault.logging.logger import Log
from docvault.pdf.exceptions import PdfRasterizationError


class PdfRasterizer:
    """Renders PDF pages to PNG images for recognition.

    Args:
        scale: Zoom factor applied to the page's natural size.
        max_pages: Upper bound on rendered pages; ``0`` renders every page.
    """

    def __init__(self, scale: float = 1.5, max_pages: int = 5) -> None:
        self._scale = scale
        self._max_pages = max_pages

    def rasterize(self, pdf_bytes: bytes) -> list[bytes]:
        """Render the leading pages of a PDF to PNG bytes, one item per page.

        Raises:
            PdfRasterizationError: if the document cannot be opened or rendered.
        """
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                total = doc.page_count
                limit = total if self._max_pages <= 0 else min(total, self._max_pages)
                if limit < total:
                    Log.warning(f"Rasterizing {limit} of {total} pages for recognition")
                matrix = pymupdf.Matrix(self._scale, self._scale)
                return [doc[index].get_pixmap(matrix=matrix).tobytes("png") for index in range(limit)]
        except Exception as exc:
            raise PdfRasterizationError(f"pymupdf rasterization failed: {exc}") from exc

from docvault.config.settings import Settings
from docvault.pdf.base import BasePdfExtractor
from docvault.pdf.pdfplumber_adapter import PdfPlumberAdapter
from docvault.pdf.pymupdf_adapter import PyMuPdfAdapter
from docvault.pdf.rasterizer import PdfRasterizer


class PdfExtractorFactory:
    """Creates the correct PDF extractor based on settings."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls(meaningful_text_threshold=settings.structured_text_threshold)

    @classmethod
    def create_rasterizer(cls, settings: Settings) -> PdfRasterizer:
        return PdfRasterizer(
            scale=settings.ocr_render_scale,
            max_pages=settings.ocr_max_pages,
        )

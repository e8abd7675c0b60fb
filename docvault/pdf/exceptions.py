class PdfExtractionError(Exception):
    """Raised when a structured document cannot be parsed for text."""


class PdfRasterizationError(Exception):
    """Raised when structured document pages cannot be rendered to images."""

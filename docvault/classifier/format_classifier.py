"""Media-type based routing of uploads to an extraction category."""

from enum import Enum
from pathlib import PurePath


class FormatCategory(str, Enum):
    """Extraction category assigned to an upload."""

    STRUCTURED_DOCUMENT = "structured-document"
    IMAGE = "image"
    PLAIN_TEXT = "plain-text"
    UNSUPPORTED = "unsupported"


STRUCTURED_MIME_TYPES: frozenset[str] = frozenset({"application/pdf", "application/x-pdf"})

# Word-processor formats are decoded as text containers, like text/*.
TEXT_CONTAINER_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/json",
        "application/xml",
    }
)

PERMISSIVE_TEXT_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

IMAGE_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/tiff",
        "image/webp",
    }
)

EXTENSION_MIME_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".csv": "text/csv",
    ".json": "application/json",
    ".xml": "application/xml",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".webp": "image/webp",
}

_GENERIC_MIME_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})


def normalize_mime(mime_type: str | None) -> str:
    """Lower-case a media type and drop its parameters."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def charset_from_mime(mime_type: str | None) -> str | None:
    """Return the ``charset`` parameter of a media type, if declared."""
    if not mime_type:
        return None
    for param in mime_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"').lower()
    return None


def mime_from_name(file_name: str | None) -> str:
    """Guess a media type from a file-name extension, ``""`` if unknown."""
    if not file_name:
        return ""
    return EXTENSION_MIME_TYPES.get(PurePath(file_name).suffix.lower(), "")


def is_permissive_text(mime_type: str | None, file_name: str | None = None) -> bool:
    """True for word-processor formats read leniently as text."""
    mime = normalize_mime(mime_type)
    if mime in _GENERIC_MIME_TYPES:
        mime = mime_from_name(file_name)
    return mime in PERMISSIVE_TEXT_MIME_TYPES


def classify(mime_type: str | None, file_name: str | None = None) -> FormatCategory:
    """Map a declared media type to an extraction category.

    The file-name extension is consulted only when the media type carries no
    information (missing or ``application/octet-stream``).
    """
    mime = normalize_mime(mime_type)
    if mime in _GENERIC_MIME_TYPES:
        mime = mime_from_name(file_name)
    return _category_for(mime)


def _category_for(mime: str) -> FormatCategory:
    if mime in STRUCTURED_MIME_TYPES:
        return FormatCategory.STRUCTURED_DOCUMENT
    if mime.startswith("text/") or mime in TEXT_CONTAINER_MIME_TYPES:
        return FormatCategory.PLAIN_TEXT
    if mime in IMAGE_MIME_TYPES:
        return FormatCategory.IMAGE
    return FormatCategory.UNSUPPORTED

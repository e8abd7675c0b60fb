import base64
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from docvault.classifier.format_classifier import FormatCategory


class ExtractionMethod(str, Enum):
    """Which stage produced a record's extracted text."""

    NONE = "none"
    DIRECT_TEXT = "direct-text"
    STRUCTURED_PARSE = "structured-parse"
    RECOGNITION = "recognition"
    FAILED = "failed"


@dataclass(frozen=True)
class DocumentRecord:
    """Represents a row from the documents table.

    Provenance fields and ``raw_content`` never change after creation; the
    extraction fields are replaced as a group by :meth:`with_extraction`.
    """

    id: str
    owner_id: str
    name: str
    mime_type: str
    size_bytes: int
    raw_content: bytes
    uploaded_at: datetime
    category: FormatCategory = FormatCategory.UNSUPPORTED
    extracted_text: str = ""
    extraction_method: ExtractionMethod = ExtractionMethod.NONE
    extraction_error: str | None = None
    page_count: int = 0
    processing_duration_ms: int = 0
    updated_at: datetime | None = None

    @property
    def has_text(self) -> bool:
        return bool(self.extracted_text)

    def with_extraction(
        self,
        *,
        category: FormatCategory,
        extracted_text: str,
        extraction_method: ExtractionMethod,
        extraction_error: str | None,
        page_count: int,
        processing_duration_ms: int,
        updated_at: datetime,
    ) -> "DocumentRecord":
        """Return a copy carrying the outcome of one extraction attempt."""
        return replace(
            self,
            category=category,
            extracted_text=extracted_text,
            extraction_method=extraction_method,
            extraction_error=extraction_error,
            page_count=page_count,
            processing_duration_ms=processing_duration_ms,
            updated_at=updated_at,
        )

    def metadata(self) -> "DocumentMetadata":
        return DocumentMetadata(
            id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            mime_type=self.mime_type,
            size_bytes=self.size_bytes,
            uploaded_at=self.uploaded_at,
            category=self.category,
            extraction_method=self.extraction_method,
            has_text=self.has_text,
            text_length=len(self.extracted_text),
            page_count=self.page_count,
            processing_duration_ms=self.processing_duration_ms,
        )

    def snapshot(self) -> dict[str, object]:
        """JSON-serializable export of the full record."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "uploaded_at": self.uploaded_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "category": self.category.value,
            "can_extract_text": self.category is not FormatCategory.UNSUPPORTED,
            "extracted_text": self.extracted_text,
            "has_text": self.has_text,
            "extraction_method": self.extraction_method.value,
            "extraction_error": self.extraction_error,
            "page_count": self.page_count,
            "processing_duration_ms": self.processing_duration_ms,
            "content_base64": base64.b64encode(self.raw_content).decode("ascii"),
        }


@dataclass(frozen=True)
class DocumentMetadata:
    """Listing view of a record, without raw bytes or text."""

    id: str
    owner_id: str
    name: str
    mime_type: str
    size_bytes: int
    uploaded_at: datetime
    category: FormatCategory
    extraction_method: ExtractionMethod
    has_text: bool
    text_length: int
    page_count: int
    processing_duration_ms: int


@dataclass(frozen=True)
class TextResult:
    """Extracted text of one record."""

    text: str
    method: ExtractionMethod
    has_text: bool
    uploaded_at: datetime


@dataclass(frozen=True)
class RawFile:
    """Original upload, as needed for a download."""

    content: bytes
    mime_type: str
    name: str


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of deleting one id in a batch."""

    id: str
    success: bool
    error: str | None = None

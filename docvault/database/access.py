from docvault.database.exceptions import AccessDeniedError, DocumentNotFoundError
from docvault.database.models import DocumentRecord


def check_access(record: DocumentRecord | None, document_id: str, owner_id: str) -> DocumentRecord:
    """Single owner-scoping gate for every store read, delete and export.

    Raises:
        DocumentNotFoundError: if ``record`` is missing.
        AccessDeniedError: if the record belongs to another owner.
    """
    if record is None:
        raise DocumentNotFoundError(f"Document {document_id} not found")
    if record.owner_id != owner_id:
        raise AccessDeniedError(f"Access denied to document {document_id}")
    return record

class StoreError(Exception):
    """Base exception for all document store errors."""


class DocumentNotFoundError(StoreError):
    """Raised when no document with the requested id exists."""


class AccessDeniedError(StoreError):
    """Raised when a document belongs to a different owner than the caller."""


class StorageWriteError(StoreError):
    """Raised when a document cannot be written to durable storage."""

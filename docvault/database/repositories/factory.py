from docvault.config.settings import Settings
from docvault.database.connection import init_pool
from docvault.database.repositories.base import BaseDocumentStore
from docvault.database.repositories.postgres_document_store import PostgresDocumentStore
from docvault.database.repositories.sqlite_document_store import SqliteDocumentStore


class DocumentStoreFactory:
    """Creates the configured document store backend."""

    BACKENDS: tuple[str, ...] = ("sqlite", "postgres")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentStore:
        backend = settings.storage_backend.lower()
        if backend == "sqlite":
            return SqliteDocumentStore(settings.sqlite_path)
        if backend == "postgres":
            init_pool(settings)
            return PostgresDocumentStore()
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )

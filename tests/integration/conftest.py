import os
import shutil
from collections.abc import Generator

import pytest

from docvault.config.settings import Settings
from docvault.database.connection import close_pool, get_connection, init_pool
from docvault.database.repositories.postgres_document_store import PostgresDocumentStore


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docvault_test")
    return Settings(_env_file=None, storage_backend="postgres")


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute("SELECT 1")
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def postgres_store(integration_pool: None) -> Generator[PostgresDocumentStore, None, None]:
    store = PostgresDocumentStore()
    store.initialize()
    yield store
    with get_connection() as conn:
        conn.execute("DELETE FROM documents WHERE owner_id LIKE %s", ("it-%",))
        conn.commit()


@pytest.fixture(scope="session")
def tesseract_available() -> None:
    if shutil.which("tesseract") is None:
        pytest.skip("tesseract binary not installed")

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool

from docvault.config.settings import Settings
from docvault.logging.logger import Log

# Seconds to wait for the first connection before giving up on the database.
POOL_OPEN_TIMEOUT = 10.0

_pool: ConnectionPool | None = None


def build_conninfo(settings: Settings) -> str:
    """libpq connection string for the documents database."""
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
        application_name="docvault",
    )


def init_pool(settings: Settings) -> None:
    """Open the process-wide PostgreSQL pool; a no-op when it is already open.

    Sized for one connection per concurrent ingestion plus one for reads.

    Raises:
        psycopg_pool.PoolTimeout: if no connection can be made in time.
    """
    global _pool  # noqa: PLW0603
    if _pool is not None:
        return
    pool = ConnectionPool(
        build_conninfo(settings),
        min_size=1,
        max_size=settings.max_concurrent_ingestions + 1,
        name="docvault",
        open=True,
    )
    try:
        pool.wait(timeout=POOL_OPEN_TIMEOUT)
    except Exception:
        pool.close()
        raise
    _pool = pool
    Log.info(
        f"Connection pool opened for {settings.db_host}:{settings.db_port}",
        database=settings.db_database,
    )


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn

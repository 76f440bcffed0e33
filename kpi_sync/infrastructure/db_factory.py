"""
Database connection factory utilities for toggl-trello-kpi.

Provides centralized management of PostgreSQL connections and the connection
pool, sized from the `DATABASE_MAX_*` settings. The PoolManager singleton ensures
the pool is closed on application exit.

Opening the pool retries on timeout using tenacity.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from kpi_sync.config import Settings, get_settings
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


class PoolManager:
    """
    Thread-safe singleton owning the synchronous connection pool.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._pool = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_pool(self, settings: Optional[Settings] = None) -> ConnectionPool:
        """
        Get or create the connection pool.

        The pool keeps `db_max_idle_connections` connections open, allows up to
        `db_max_open_connections`, and recycles connections older than
        `db_max_lifetime_minutes`.
        """
        with self._lock:
            if self._pool is None:
                settings = settings or get_settings()
                max_size = max(1, settings.db_max_open_connections)
                pool = ConnectionPool(
                    conninfo=build_dsn(settings),
                    min_size=min(settings.db_max_idle_connections, max_size),
                    max_size=max_size,
                    max_lifetime=settings.db_max_lifetime_minutes * 60.0,
                    open=False,
                )
                try:
                    _open_pool(pool)
                except PoolTimeout:
                    pool.close()
                    raise
                self._pool = pool
                log.debug(
                    "Connection pool opened",
                    extra={"min_size": self._pool.min_size, "max_size": self._pool.max_size},
                )
            return self._pool

    @contextmanager
    def connection(self) -> Generator[Connection, None, None]:
        """
        Context manager for obtaining a connection from the pool.

        Example
        -------
            manager = PoolManager()
            with manager.connection() as conn:
                CsvInserter(conn).insert("toggl_time_entries.csv", "toggl_time", TogglTimeEntry)
        """
        pool = self.get_pool()
        with pool.connection() as conn:
            yield conn

    def close_all(self) -> None:
        """
        Close the managed pool and release resources.

        This is called automatically on exit via atexit hook.
        """
        with self._lock:
            if self._pool is not None:
                try:
                    self._pool.close()
                except psycopg.Error:
                    log.warning("Error closing the connection pool", exc_info=True)
                finally:
                    self._pool = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(PoolTimeout),
    reraise=True,
)
def _open_pool(pool: ConnectionPool) -> None:
    """Open `pool` and wait for its minimum connections, retrying on timeout."""
    pool.open(wait=True, timeout=10.0)


__all__ = [
    "PoolManager",
    "build_dsn",
]

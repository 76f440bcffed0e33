"""
Pytest configuration for toggl-trello-kpi.

Provides fixtures for:
- Settings override for integration tests
- Database connection management (skipped when PostgreSQL is unreachable)
- In-memory fakes of psycopg connections and cursors for unit tests
"""

from __future__ import annotations

import contextlib
import os
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence, Tuple

import psycopg
import pytest
from psycopg import sql

from kpi_sync.config import Settings


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        _env_file=None,
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "toggl_trello_kpi"),
        log_level="debug",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


def render(query: Any) -> str:
    """Render a composed query (or plain string) as SQL text."""
    if isinstance(query, sql.Composable):
        return query.as_string(None)
    return str(query)


class FakeAdapters:
    def __init__(self) -> None:
        self.loaders: Dict[int, Any] = {}

    def register_loader(self, oid: int, loader: Any) -> None:
        self.loaders[oid] = loader


class FakeColumn:
    def __init__(self, name: str) -> None:
        self.name = name


class FakeCursor:
    """Cursor double recording executed statements on its connection."""

    def __init__(self, conn: "FakeConnection", row_factory: Any = None) -> None:
        self._conn = conn
        self.row_factory = row_factory
        self.adapters = FakeAdapters()
        self.description: Optional[List[FakeColumn]] = None
        self.closed = False

    def execute(self, query: Any, params: Optional[Sequence[Any]] = None) -> "FakeCursor":
        self._conn.record(query, params)
        if self._conn.columns is not None:
            self.description = [FakeColumn(name) for name in self._conn.columns]
        return self

    def __iter__(self):
        return iter(self._conn.rows)

    def close(self) -> None:
        self.closed = True
        if self._conn.close_error is not None:
            raise self._conn.close_error

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FakeConnection:
    """
    Connection double for unit tests.

    `rows` and `columns` describe the result set returned by any query;
    `fail_when(params)` returning True makes that statement raise a psycopg error.
    """

    def __init__(
        self,
        rows: Optional[List[Dict[str, Any]]] = None,
        columns: Optional[List[str]] = None,
        fail_when: Optional[Callable[[Optional[Sequence[Any]]], bool]] = None,
        close_error: Optional[Exception] = None,
    ) -> None:
        self.rows = rows or []
        self.columns = columns
        self.fail_when = fail_when
        self.close_error = close_error
        self.executed: List[Tuple[str, Optional[Sequence[Any]]]] = []
        self.cursors: List[FakeCursor] = []
        self.commits = 0
        self.rollbacks = 0

    def record(self, query: Any, params: Optional[Sequence[Any]]) -> None:
        if self.fail_when is not None and self.fail_when(params):
            raise psycopg.DataError("invalid input value")
        self.executed.append((render(query), params))

    def cursor(self, row_factory: Any = None) -> FakeCursor:
        cursor = FakeCursor(self, row_factory=row_factory)
        self.cursors.append(cursor)
        return cursor

    def execute(self, query: Any, params: Optional[Sequence[Any]] = None) -> None:
        self.record(query, params)

    @contextlib.contextmanager
    def transaction(self) -> Generator[None, None, None]:
        try:
            yield
        except BaseException:
            self.rollbacks += 1
            raise
        self.commits += 1

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def make_connection() -> Callable[..., FakeConnection]:
    """Factory for `FakeConnection` with a canned result set or failure rule."""
    return FakeConnection

"""
Infrastructure package for toggl-trello-kpi.

Centralizes database connectivity concerns (connection factory, pooling,
table DDL). Keep this layer focused on I/O and resource management, decoupled
from the CSV mapping logic.
"""

from kpi_sync.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
)
from kpi_sync.infrastructure.schema import init_database

__all__ = [
    "PoolManager",
    "build_dsn",
    "init_database",
]

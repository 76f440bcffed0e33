"""
Utilities package for toggl-trello-kpi.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from kpi_sync.utils.logging import configure_logging, get_logger, resolve_log_level

__all__ = [
    "configure_logging",
    "get_logger",
    "resolve_log_level",
]

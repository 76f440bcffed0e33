"""
Registry of the database tables the CLI may touch and their record shapes.

Table and column names reach SQL text unquoted, so every name coming from the
command line is checked against this registry first.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

from pydantic import BaseModel

from kpi_sync.domain.fields import Shape
from kpi_sync.domain.models import TogglTimeEntry, TrelloCardEntry


def _table_models() -> Dict[str, Type[BaseModel]]:
    """Registry of available tables."""
    return {
        "toggl_time": TogglTimeEntry,
        "trello_card": TrelloCardEntry,
    }


def available_tables() -> List[str]:
    """List available table names."""
    return sorted(_table_models().keys())


def resolve_table(name: str) -> Shape:
    """Return the record shape of table `name`."""
    models = _table_models()
    if name not in models:
        raise ValueError(
            f"Unknown table '{name}'. Choose from: {', '.join(available_tables())}"
        )
    return Shape.of(models[name])


def validate_columns(table: str, columns: Iterable[str]) -> List[str]:
    """Return `columns` as a list after checking each is a column of `table`."""
    shape = resolve_table(table)
    names = list(columns)
    unknown = [c for c in names if c not in shape.columns]
    if unknown:
        raise ValueError(
            f"Unknown column(s) for table '{table}': {', '.join(unknown)}. "
            f"Available: {', '.join(shape.columns)}"
        )
    return names


__all__ = ["available_tables", "resolve_table", "validate_columns"]

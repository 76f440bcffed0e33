"""
Domain package for toggl-trello-kpi.

Exports the record models and the field/shape machinery that maps them to and
from CSV rows and SQL parameters.
"""

from kpi_sync.domain.fields import (
    FieldKind,
    FieldValue,
    Int64,
    Shape,
    ShapeField,
    TextSequence,
    UInt64,
)
from kpi_sync.domain.models import TogglTimeEntry, TrelloCardEntry

__all__ = [
    "FieldKind",
    "FieldValue",
    "Int64",
    "UInt64",
    "TextSequence",
    "Shape",
    "ShapeField",
    "TogglTimeEntry",
    "TrelloCardEntry",
]

"""
toggl-trello-kpi - sync Toggl time entries and Trello cards with PostgreSQL.

Records fetched from the Toggl Track and Trello APIs are normalized into flat,
typed rows, stored in the `toggl_time` and `trello_card` tables, and can be
moved between the database and CSV files:

- Typed records exported as CSV
- Tables (or column subsets) exported as CSV
- CSV files inserted into a table, typed by a record shape
- One table column updated from a CSV file, matching on id
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from kpi_sync.config import Settings, get_settings
from kpi_sync.domain.fields import FieldKind, FieldValue, Int64, Shape, TextSequence, UInt64
from kpi_sync.domain.models import TogglTimeEntry, TrelloCardEntry
from kpi_sync.errors import (
    DatabaseConnectionError,
    EmptyEntriesError,
    FieldCoercionError,
    KpiSyncError,
    MissingParameterError,
)
from kpi_sync.storage import (
    CsvColumnUpdater,
    CsvInserter,
    OperationResult,
    StructCsvExporter,
    TableCsvExporter,
)
from kpi_sync.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "FieldKind",
    "FieldValue",
    "Int64",
    "UInt64",
    "TextSequence",
    "Shape",
    "TogglTimeEntry",
    "TrelloCardEntry",
    # Storage services
    "OperationResult",
    "StructCsvExporter",
    "TableCsvExporter",
    "CsvInserter",
    "CsvColumnUpdater",
    # Errors
    "KpiSyncError",
    "MissingParameterError",
    "DatabaseConnectionError",
    "EmptyEntriesError",
    "FieldCoercionError",
    # Logging
    "configure_logging",
    "get_logger",
]

"""
Storage package for toggl-trello-kpi.

Re-exports the CSV <-> PostgreSQL services so callers can import them from
`kpi_sync.storage` directly.
"""

from kpi_sync.storage.abstract import OperationResult
from kpi_sync.storage.csv_insert import CsvInserter
from kpi_sync.storage.csv_update import CsvColumnUpdater
from kpi_sync.storage.struct_csv import StructCsvExporter
from kpi_sync.storage.table_csv import TableCsvExporter

__all__ = [
    "OperationResult",
    "CsvInserter",
    "CsvColumnUpdater",
    "StructCsvExporter",
    "TableCsvExporter",
]

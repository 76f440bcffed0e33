"""
SQL result-set CSV export: dump a table, or a subset of its columns, to `{table}.csv`.

Column names come from the query's result description, not from any record
shape. Every value is loaded as raw text (no type conversion) and written
verbatim; NULL becomes an empty field.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

import psycopg
from psycopg import sql
from psycopg.adapt import Loader
from psycopg.postgres import types as postgres_types
from psycopg.rows import dict_row

from kpi_sync.errors import DatabaseConnectionError
from kpi_sync.storage.abstract import (
    CSV_DIALECT,
    OperationResult,
    closing_first_error,
    csv_path,
    identifier,
    identifier_list,
)
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)


class RawTextLoader(Loader):
    """Load any column as the text PostgreSQL sent, without conversion."""

    def load(self, data: Any) -> str:
        if isinstance(data, memoryview):
            data = bytes(data)
        return data.decode("utf-8")


def use_raw_text(cursor: psycopg.Cursor) -> None:
    """Register `RawTextLoader` for every built-in type and array type on `cursor`."""
    for info in postgres_types:
        cursor.adapters.register_loader(info.oid, RawTextLoader)
        if info.array_oid:
            cursor.adapters.register_loader(info.array_oid, RawTextLoader)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


class TableCsvExporter:
    """
    Export the rows of a database table as a CSV file.

    Table and column names are checked to be plain SQL identifiers and are
    otherwise interpolated as given; callers restrict them to known tables.
    """

    name: str = "download_as_csv"

    def __init__(
        self,
        connection: Optional[psycopg.Connection],
        directory: Path | str | None = None,
    ) -> None:
        if connection is None:
            raise DatabaseConnectionError()
        self._conn = connection
        self.directory = directory

    def download_all(self, table: str) -> OperationResult:
        """Write every column of every row of `table` to `{table}.csv`."""
        query = sql.SQL("SELECT * FROM {}").format(identifier(table))
        return self._export(table, query)

    def download(self, table: str, columns: Sequence[str]) -> OperationResult:
        """Write the given columns, in the given order, of every row of `table`."""
        query = sql.SQL("SELECT {} FROM {}").format(
            identifier_list(list(columns)), identifier(table)
        )
        return self._export(table, query)

    def _export(self, table: str, query: sql.Composable) -> OperationResult:
        path = csv_path(table, self.directory)
        cursor = self._conn.cursor(row_factory=dict_row)
        with closing_first_error(cursor):
            use_raw_text(cursor)
            cursor.execute(query)
            column_names = self._column_names(cursor)
            rows = self._write_csv(path, column_names, cursor)

        log.info(
            "Table exported", extra={"table": table, "file": str(path), "rows": rows}
        )
        return OperationResult(operation=self.name, target=table, file=str(path), rows=rows)

    @staticmethod
    def _column_names(cursor: psycopg.Cursor) -> List[str]:
        if cursor.description is None:
            raise psycopg.ProgrammingError("the query did not return a result set")
        return [column.name for column in cursor.description]

    @staticmethod
    def _write_csv(path: Path, column_names: List[str], rows: Any) -> int:
        count = 0
        f = open(path, "w", newline="", encoding="utf-8")
        with closing_first_error(f):
            writer = csv.writer(f, **CSV_DIALECT)
            writer.writerow(column_names)
            for values in rows:
                writer.writerow(_ordered(column_names, values))
                count += 1
        return count


def _ordered(column_names: List[str], values: Mapping[str, Any]) -> List[str]:
    # Place each value by its column name so the row follows the header order.
    row = [""] * len(column_names)
    positions = {name: i for i, name in enumerate(column_names)}
    for name, value in values.items():
        row[positions[name]] = _cell(value)
    return row


__all__ = ["TableCsvExporter", "RawTextLoader", "use_raw_text"]

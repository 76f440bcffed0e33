"""
CSV column update: set one column of existing rows from a CSV file.

Rows are matched on the `id` column. Values are bound as text; PostgreSQL casts
them to the column type.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import psycopg
from psycopg import sql

from kpi_sync.errors import DatabaseConnectionError
from kpi_sync.storage.abstract import OperationResult, identifier, read_csv_document
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)

ID_COLUMN = "id"


class CsvColumnUpdater:
    """
    Update a single table column row by row from a CSV file.

    A row whose UPDATE fails is logged and counted; the remaining rows are
    still attempted.
    """

    name: str = "update_from_csv"

    def __init__(self, connection: Optional[psycopg.Connection]) -> None:
        if connection is None:
            raise DatabaseConnectionError()
        self._conn = connection

    def upload(self, file_name: Path | str, table: str, column: str) -> OperationResult:
        """
        Run ``UPDATE table SET column = value WHERE id = id`` for each CSV data row.

        The file must have both an `id` column and `column`; otherwise nothing is
        updated and the returned result is marked as skipped.
        """
        statement = sql.SQL("UPDATE {} SET {} = %s WHERE id = %s").format(
            identifier(table), identifier(column)
        )
        result = OperationResult(
            operation=self.name, target=f"{table}.{column}", file=str(file_name), rows=0, failed=0
        )

        lines = read_csv_document(file_name)
        if not lines:
            log.error("The CSV file is empty.", extra={"file": str(file_name)})
            result["skipped"] = True
            return result
        header = lines[0]
        if ID_COLUMN not in header:
            log.error("The CSV file must contain the ID column.", extra={"file": str(file_name)})
            result["skipped"] = True
            return result
        if column not in header:
            log.error(
                "The CSV file does not contain a required column.",
                extra={"file": str(file_name), "column": column},
            )
            result["skipped"] = True
            return result

        id_index = header.index(ID_COLUMN)
        column_index = header.index(column)
        for line in lines[1:]:
            if self._update_row(statement, line[column_index], line[id_index]):
                result["rows"] += 1
            else:
                result["failed"] += 1

        log.info(
            "CSV column update finished",
            extra={"table": table, "column": column, "rows": result["rows"], "failed": result["failed"]},
        )
        return result

    def _update_row(self, statement: sql.Composable, value: str, row_id: str) -> bool:
        try:
            with self._conn.cursor() as cursor:
                cursor.execute(statement, (value, row_id))
        except psycopg.Error:
            log.exception("Row update failed", extra={"id": row_id})
            self._conn.rollback()
            return False
        self._conn.commit()
        return True


__all__ = ["CsvColumnUpdater", "ID_COLUMN"]

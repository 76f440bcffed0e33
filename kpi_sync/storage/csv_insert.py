"""
CSV import: insert every data row of a CSV file into a database table.

The CSV header is used as the INSERT column list. Each cell is parsed by the
kind of the same-named field of a reference record shape, then bound as a
statement parameter. Rows are inserted and committed one at a time; a failure
stops the import and leaves earlier rows in place.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Type, Union

import psycopg
from psycopg import sql
from pydantic import BaseModel

from kpi_sync.domain.fields import FieldValue, Shape
from kpi_sync.errors import DatabaseConnectionError, FieldCoercionError
from kpi_sync.storage.abstract import (
    OperationResult,
    identifier,
    identifier_list,
    read_csv_document,
)
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)


def build_insert(table: str, columns: List[str]) -> sql.Composed:
    """Return ``INSERT INTO table(c1,...,cn) VALUES (%s,...,%s)``."""
    return sql.SQL("INSERT INTO {}({}) VALUES ({})").format(
        identifier(table),
        identifier_list(columns),
        sql.SQL(",").join(sql.Placeholder() * len(columns)),
    )


class CsvInserter:
    """
    Insert CSV rows into a table using a record shape to type the values.
    """

    name: str = "insert_from_csv"

    def __init__(self, connection: Optional[psycopg.Connection]) -> None:
        if connection is None:
            raise DatabaseConnectionError()
        self._conn = connection

    def insert(
        self,
        file_name: Path | str,
        table: str,
        shape: Union[BaseModel, Type[BaseModel], Shape],
    ) -> OperationResult:
        """
        Insert every data row of `file_name` into `table`.

        Parameters
        ----------
        file_name : Path | str
            CSV file whose first row names the table columns.
        table : str
            Target table.
        shape : record instance, record class or Shape
            Reference record whose field kinds drive value parsing.

        Raises
        ------
        FieldCoercionError
            If a cell cannot be parsed into its field's kind.
        UnknownColumnError
            If a header column is not a field of the shape.
        csv.Error, OSError, psycopg.Error
            Propagated unchanged.
        """
        record_shape = shape if isinstance(shape, Shape) else Shape.of(shape)

        lines = read_csv_document(file_name)
        if not lines:
            log.info("The CSV file is empty.", extra={"file": str(file_name)})
            return OperationResult(
                operation=self.name, target=table, file=str(file_name), rows=0, skipped=True
            )

        columns = lines[0]
        statement = build_insert(table, columns)
        inserted = 0
        for line_number, line in enumerate(lines[1:], start=1):
            params = self._params(record_shape, columns, line, line_number)
            self._execute(statement, params)
            inserted += 1

        log.info(
            "CSV rows inserted",
            extra={"table": table, "file": str(file_name), "rows": inserted},
        )
        return OperationResult(
            operation=self.name, target=table, file=str(file_name), rows=inserted
        )

    @staticmethod
    def _params(shape: Shape, columns: List[str], line: List[str], row: int) -> List[Any]:
        params: List[Any] = []
        for column, text in zip(columns, line):
            field = shape.field(column)
            if not field.supported:
                log.error(
                    "Cannot convert the data type",
                    extra={"field": column, "data_type": field.describe_type()},
                )
                params.append(text)
                continue
            try:
                value = FieldValue.parse(field.kind, text, column=column)
            except FieldCoercionError as exc:
                raise exc.at_row(row) from exc
            params.append(value.to_param())
        return params

    def _execute(self, statement: sql.Composable, params: List[Any]) -> None:
        try:
            with self._conn.cursor() as cursor:
                cursor.execute(statement, params)
        except psycopg.Error:
            self._conn.rollback()
            raise
        self._conn.commit()


__all__ = ["CsvInserter", "build_insert"]

"""
Typed-row CSV export: write a collection of records to `{name}.csv`.

The header comes from the shape of the first record; each record becomes one
row of canonical field texts (see `kpi_sync.domain.fields.FieldValue.to_text`).
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel

from kpi_sync.domain.fields import Shape
from kpi_sync.errors import EmptyEntriesError
from kpi_sync.storage.abstract import CSV_DIALECT, OperationResult, closing_first_error, csv_path
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)


class StructCsvExporter:
    """
    Export uniformly-shaped records as a CSV file.

    Fields whose kind is outside the supported whitelist are logged and written
    as empty values; they never fail the export.
    """

    name: str = "download_struct_as_csv"

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = directory

    def download_all(self, entries: Optional[Sequence[BaseModel]], name: str) -> OperationResult:
        """
        Write `entries` to `{name}.csv`, overwriting any existing file.

        Raises
        ------
        EmptyEntriesError
            If `entries` is None or empty. No file is created.
        """
        if not entries:
            raise EmptyEntriesError()

        shape = Shape.of(entries[0])
        path = csv_path(name, self.directory)

        f = open(path, "w", newline="", encoding="utf-8")
        with closing_first_error(f):
            writer = csv.writer(f, **CSV_DIALECT)
            writer.writerow(shape.columns)
            for entry in entries:
                writer.writerow(self._row(shape, entry))

        log.info("CSV file written", extra={"file": str(path), "rows": len(entries)})
        return OperationResult(
            operation=self.name,
            target=name,
            file=str(path),
            rows=len(entries),
        )

    def _row(self, shape: Shape, entry: BaseModel) -> List[str]:
        values: List[str] = []
        for field in shape.fields:
            if not field.supported:
                log.error(
                    "Cannot convert the data type",
                    extra={"field": field.column, "data_type": field.describe_type()},
                )
                values.append("")
                continue
            values.append(field.value_of(entry).to_text())
        return values


__all__ = ["StructCsvExporter"]

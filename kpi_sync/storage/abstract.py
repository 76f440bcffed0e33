"""
Shared contracts and helpers for the CSV <-> PostgreSQL storage services.

Every service returns an `OperationResult` TypedDict so the CLI and reporter can
render any operation the same way. The helpers here carry the rules the services
have in common: plain-identifier checking for interpolated table and column
names, first-error-wins resource closing, and strict CSV document parsing.
"""

from __future__ import annotations

import contextlib
import csv
import re
from pathlib import Path
from typing import Any, Generator, List, Optional, Protocol, TypedDict, TypeVar, runtime_checkable

from psycopg import sql

from kpi_sync.errors import InvalidIdentifierError
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

CSV_DIALECT = {
    "delimiter": ",",
    "quotechar": '"',
    "lineterminator": "\n",
}


class OperationResult(TypedDict, total=False):
    """
    Outcome of one storage operation.

    Fields are optional; the reporter tolerates missing values.
    """

    operation: str
    target: str
    file: Optional[str]
    rows: int
    failed: int
    skipped: bool
    notes: Optional[str]


@runtime_checkable
class Closeable(Protocol):
    def close(self) -> Any: ...


_C = TypeVar("_C", bound=Closeable)


@contextlib.contextmanager
def closing_first_error(resource: _C) -> Generator[_C, None, None]:
    """
    Close `resource` on exit, keeping the first error.

    If the body raised, a failing close is logged and the body's error
    propagates. If the body succeeded, a failing close propagates.
    """
    try:
        yield resource
    except BaseException:
        try:
            resource.close()
        except Exception:
            log.warning("Close failed after an earlier error", exc_info=True)
        raise
    resource.close()


def identifier(name: str) -> sql.SQL:
    """
    Return `name` as a raw SQL fragment after checking it is a plain identifier.

    Names are interpolated unquoted so they fold to lower case the way the
    table DDL does.
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise InvalidIdentifierError(str(name))
    return sql.SQL(name)


def identifier_list(names: List[str]) -> sql.Composed:
    return sql.SQL(",").join(identifier(n) for n in names)


def read_csv_document(path: Path | str) -> List[List[str]]:
    """
    Read a whole CSV file, enforcing that every record has the header's width.

    Blank lines are skipped. Raises `csv.Error` on malformed input.
    """
    with open(path, "r", newline="", encoding="utf-8") as f:
        reader = csv.reader(f, strict=True, **CSV_DIALECT)
        lines: List[List[str]] = []
        for record in reader:
            if not record:
                continue
            if lines and len(record) != len(lines[0]):
                raise csv.Error(
                    f"record on line {reader.line_num}: wrong number of fields "
                    f"(expected {len(lines[0])}, got {len(record)})"
                )
            lines.append(record)
    return lines


def csv_path(name: str, directory: Path | str | None = None) -> Path:
    """Path of the `{name}.csv` file in `directory` (defaults to the working directory)."""
    base = Path(directory) if directory is not None else Path.cwd()
    return base / f"{name}.csv"


__all__ = [
    "OperationResult",
    "CSV_DIALECT",
    "closing_first_error",
    "identifier",
    "identifier_list",
    "read_csv_document",
    "csv_path",
]

"""
Error taxonomy for toggl-trello-kpi.

Every error raised by the package derives from `KpiSyncError`, so the CLI can
tell expected operational failures from programming errors. I/O, CSV parser
and database driver exceptions are not wrapped and propagate unchanged.
"""

from __future__ import annotations

from typing import Optional


class KpiSyncError(Exception):
    """Base class for all toggl-trello-kpi errors."""


class MissingParameterError(KpiSyncError):
    """A required collaborator was not supplied to a constructor."""

    def __init__(self, parameter_name: str) -> None:
        self.parameter_name = parameter_name
        super().__init__(f"The parameter {parameter_name} is missing.")


class DatabaseConnectionError(MissingParameterError):
    """The database connection is missing."""

    def __init__(self, parameter_name: str = "connection") -> None:
        self.parameter_name = parameter_name
        KpiSyncError.__init__(self, "The database connection is missing.")


class EmptyEntriesError(KpiSyncError):
    """There are no records to export."""

    def __init__(self, message: str = "The record entries are empty.") -> None:
        super().__init__(message)


class EmptyTimeResultError(EmptyEntriesError):
    def __init__(self) -> None:
        super().__init__("The Toggl time entries are empty.")


class EmptyTrelloCardsError(EmptyEntriesError):
    def __init__(self) -> None:
        super().__init__("The Trello card entries are empty.")


class FieldCoercionError(KpiSyncError, ValueError):
    """A CSV cell could not be parsed into the kind declared by the record shape."""

    def __init__(
        self,
        column: str,
        kind: str,
        value: str,
        row: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.column = column
        self.kind = kind
        self.value = value
        self.row = row
        self.reason = reason
        location = f"row {row}, " if row is not None else ""
        message = f"Cannot parse {location}column {column!r} value {value!r} as {kind}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def at_row(self, row: int) -> "FieldCoercionError":
        """Return a copy of this error that names the CSV row it came from."""
        return FieldCoercionError(self.column, self.kind, self.value, row=row, reason=self.reason)


class UnknownColumnError(KpiSyncError, KeyError):
    """A CSV header names a column that the record shape does not declare."""

    def __init__(self, column: str, shape_name: str) -> None:
        self.column = column
        self.shape_name = shape_name
        super().__init__(f"Column {column!r} is not a field of {shape_name}.")

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidIdentifierError(KpiSyncError, ValueError):
    """A table or column name is not a plain SQL identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"{identifier!r} is not a valid SQL identifier.")


__all__ = [
    "KpiSyncError",
    "MissingParameterError",
    "DatabaseConnectionError",
    "EmptyEntriesError",
    "EmptyTimeResultError",
    "EmptyTrelloCardsError",
    "FieldCoercionError",
    "UnknownColumnError",
    "InvalidIdentifierError",
]

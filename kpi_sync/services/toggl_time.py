"""
Toggl time service: export a date range of time entries to CSV or store them.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import List, Optional, Protocol

import psycopg

from kpi_sync.domain.models import TogglTimeEntry
from kpi_sync.errors import DatabaseConnectionError, EmptyTimeResultError, MissingParameterError
from kpi_sync.storage.abstract import OperationResult
from kpi_sync.storage.struct_csv import StructCsvExporter
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)

CSV_NAME = "toggl_time_entries"

INSERT_TOGGL_TIME = (
    "INSERT INTO toggl_time(id, description, start, stop, duration, billable, "
    "workspace_id, project_id, project_name, tags, trello_card_id) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, '')"
)


class TimeEntryClient(Protocol):
    def get_range(self, start: date, end: date) -> List[TogglTimeEntry]: ...


class TogglTime:
    """
    Retrieve Toggl time entries and hand them to the CSV exporter or the database.
    """

    def __init__(
        self,
        client: Optional[TimeEntryClient],
        connection: Optional[psycopg.Connection] = None,
        directory: Path | str | None = None,
    ) -> None:
        if client is None:
            raise MissingParameterError("client")
        self._client = client
        self._conn = connection
        self._directory = directory

    def download_as_csv(self, start: date, end: date) -> OperationResult:
        """
        Write the time entries of the range to `toggl_time_entries.csv`.

        Raises
        ------
        EmptyTimeResultError
            If Toggl returned no entries; no file is written.
        """
        entries = self._retrieve(start, end)
        if not entries:
            log.error("Skip the creation of the Toggl time entries file.")
            raise EmptyTimeResultError()
        return StructCsvExporter(self._directory).download_all(entries, CSV_NAME)

    def store(self, start: date, end: date) -> OperationResult:
        """
        Insert the time entries of the range into `toggl_time`, one transaction per entry.
        """
        if self._conn is None:
            raise DatabaseConnectionError()
        entries = self._retrieve(start, end)
        if not entries:
            log.error("Skip the creation of the Toggl time entries into the database.")
            raise EmptyTimeResultError()
        for entry in entries:
            self._store_entry(entry)
        return OperationResult(operation="store_toggl_time", target="toggl_time", rows=len(entries))

    def _retrieve(self, start: date, end: date) -> List[TogglTimeEntry]:
        entries = self._client.get_range(start, end)
        log.info("Time entries", extra={"count": len(entries)})
        return entries

    def _store_entry(self, entry: TogglTimeEntry) -> None:
        assert self._conn is not None
        with self._conn.transaction():
            self._conn.execute(
                INSERT_TOGGL_TIME,
                (
                    str(entry.id),
                    entry.description,
                    entry.start,
                    entry.stop,
                    entry.duration,
                    entry.billable,
                    entry.workspace_id,
                    entry.project_id,
                    entry.project_name,
                    list(entry.tags),
                ),
            )


__all__ = ["TogglTime", "TimeEntryClient", "CSV_NAME"]

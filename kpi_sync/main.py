from __future__ import annotations

import calendar
import csv
import sys
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Generator, NoReturn, Optional, Tuple

import psycopg
import requests
import typer

from kpi_sync.clients.toggl import TogglClient
from kpi_sync.clients.trello import TrelloClient
from kpi_sync.config import Settings, get_settings
from kpi_sync.errors import KpiSyncError
from kpi_sync.infrastructure.db_factory import PoolManager
from kpi_sync.infrastructure.schema import init_database
from kpi_sync.reporter import print_results, print_settings
from kpi_sync.services.toggl_time import TogglTime
from kpi_sync.services.trello_board import TrelloBoard
from kpi_sync.storage.abstract import OperationResult
from kpi_sync.storage.csv_insert import CsvInserter
from kpi_sync.storage.csv_update import CsvColumnUpdater
from kpi_sync.storage.table_csv import TableCsvExporter
from kpi_sync.tables import resolve_table, validate_columns
from kpi_sync.utils.logging import configure_logging, get_logger

log = get_logger(__name__)

app = typer.Typer(help="Sync Toggl time entries and Trello cards with PostgreSQL and CSV files.")

_OPERATION_ERRORS = (
    KpiSyncError,
    ValueError,
    OSError,
    csv.Error,
    psycopg.Error,
    requests.RequestException,
)


def _setup() -> Settings:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    return settings


@contextmanager
def _database() -> Generator[psycopg.Connection, None, None]:
    """Borrow a pooled connection with the tables created."""
    with PoolManager().connection() as conn:
        init_database(conn)
        yield conn


def _month_range(year: int, month: int) -> Tuple[date, date]:
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])
    return start, end


def _fail(message: str, exc: BaseException) -> NoReturn:
    log.error(message, extra={"error": str(exc), "error_type": type(exc).__name__})
    typer.echo(f"{message}: {exc}", err=True)
    raise typer.Exit(code=1)


def _report(result: OperationResult) -> None:
    print_results([dict(result)])


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    print_settings(get_settings())


@app.command("download-toggl")
def download_toggl(
    year: int = typer.Argument(..., help="Year of the time entries."),
    month: int = typer.Argument(..., min=1, max=12, help="Month of the time entries (1-12)."),
) -> None:
    """
    Download one month of Toggl time entries to toggl_time_entries.csv.
    """
    settings = _setup()
    start, end = _month_range(year, month)
    try:
        service = TogglTime(TogglClient.from_settings(settings))
        result = service.download_as_csv(start, end)
    except _OPERATION_ERRORS as exc:
        _fail("Error retrieving and storing the time range from Toggl", exc)
    _report(result)


@app.command("download-trello")
def download_trello() -> None:
    """
    Download the Trello board cards to trello_entries.csv.
    """
    settings = _setup()
    try:
        service = TrelloBoard(TrelloClient.from_settings(settings))
        result = service.download_as_csv()
    except _OPERATION_ERRORS as exc:
        _fail("Error retrieving and storing the cards from Trello", exc)
    _report(result)


@app.command("insert-csv")
def insert_csv(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file to import."),
    table: str = typer.Argument(..., help="Target table (toggl_time or trello_card)."),
) -> None:
    """
    Insert every row of a CSV file into a table.
    """
    _setup()
    try:
        shape = resolve_table(table)
        with _database() as conn:
            result = CsvInserter(conn).insert(file, table, shape)
    except _OPERATION_ERRORS as exc:
        _fail("Error inserting the CSV file entries into the database", exc)
    _report(result)


@app.command("store-toggl")
def store_toggl(
    year: int = typer.Argument(..., help="Year of the time entries."),
    month: int = typer.Argument(..., min=1, max=12, help="Month of the time entries (1-12)."),
) -> None:
    """
    Download one month of Toggl time entries into the toggl_time table.
    """
    settings = _setup()
    start, end = _month_range(year, month)
    try:
        client = TogglClient.from_settings(settings)
        with _database() as conn:
            result = TogglTime(client, conn).store(start, end)
    except _OPERATION_ERRORS as exc:
        _fail("Error retrieving and storing the time range from Toggl", exc)
    _report(result)


@app.command("store-trello")
def store_trello() -> None:
    """
    Download the Trello board cards into the trello_card table.
    """
    settings = _setup()
    try:
        client = TrelloClient.from_settings(settings)
        with _database() as conn:
            result = TrelloBoard(client, conn).store()
    except _OPERATION_ERRORS as exc:
        _fail("Error retrieving and storing the cards from Trello", exc)
    _report(result)


@app.command("download-table")
def download_table(
    table: str = typer.Argument(..., help="Table to export (toggl_time or trello_card)."),
    columns: Optional[str] = typer.Argument(
        None, help="Comma-separated columns to export (default: all)."
    ),
) -> None:
    """
    Download a table, or some of its columns, to <table>.csv.
    """
    _setup()
    try:
        resolve_table(table)
        selected = validate_columns(table, columns.split(",")) if columns else None
        with _database() as conn:
            exporter = TableCsvExporter(conn)
            if selected is None:
                result = exporter.download_all(table)
            else:
                result = exporter.download(table, selected)
    except _OPERATION_ERRORS as exc:
        _fail("Cannot download the database table as CSV", exc)
    _report(result)


@app.command("update-csv")
def update_csv(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file with id and column."),
    table: str = typer.Argument(..., help="Table to update (toggl_time or trello_card)."),
    column: str = typer.Argument(..., help="Column to set from the CSV file."),
) -> None:
    """
    Update one column of existing rows from a CSV file, matching on id.
    """
    _setup()
    try:
        validate_columns(table, [column])
        with _database() as conn:
            result = CsvColumnUpdater(conn).upload(file, table, column)
    except _OPERATION_ERRORS as exc:
        _fail("Cannot update the database table from CSV", exc)
    _report(result)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from kpi_sync.config import Settings


def print_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render operation results as a rich table.

    Skipped operations (e.g. an empty CSV file) are flagged in the Status column,
    and per-row failures are counted when the operation reports them.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(title="toggl-trello-kpi", box=box.ROUNDED)
    table.add_column("Operation", style="cyan", no_wrap=True)
    table.add_column("Target", style="magenta")
    table.add_column("File", style="blue")
    table.add_column("Rows", justify="right", style="bold green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Status", style="yellow")

    for res in results:
        failed = res.get("failed")
        if res.get("skipped"):
            status = "skipped"
        elif failed:
            status = "partial"
        else:
            status = "ok"
        table.add_row(
            res.get("operation", "Unknown"),
            res.get("target", ""),
            res.get("file") or "",
            f"{res.get('rows', 0):,}",
            "" if failed is None else f"{failed:,}",
            status,
        )

    console.print(table)


def print_settings(settings: Settings, console: Optional[Console] = None) -> None:
    """Render the effective configuration, masking credentials."""
    console = console or Console()
    table = Table(title="Effective configuration", box=box.ROUNDED)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    secrets = {"toggl_api_token", "trello_app_key", "trello_api_token", "db_password"}
    for name, value in settings.model_dump().items():
        if name in secrets:
            shown = "***" if value else "(unset)"
        elif isinstance(value, list):
            shown = ", ".join(value) or "(none)"
        else:
            shown = str(value)
        table.add_row(name, shown)

    console.print(table)


__all__ = ["print_results", "print_settings"]

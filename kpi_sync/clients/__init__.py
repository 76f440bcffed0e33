"""
HTTP clients for the Toggl Track and Trello APIs.

Each client turns API payloads into the typed records of `kpi_sync.domain.models`.
"""

from kpi_sync.clients.toggl import ProjectCache, TogglClient
from kpi_sync.clients.trello import TrelloClient

__all__ = ["ProjectCache", "TogglClient", "TrelloClient"]

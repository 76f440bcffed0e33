"""
Services combining an API client with the CSV exporter or the database.
"""

from kpi_sync.services.toggl_time import TogglTime
from kpi_sync.services.trello_board import TrelloBoard

__all__ = ["TogglTime", "TrelloBoard"]

"""
Trello board service: export the board's cards to CSV or store them.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol

import psycopg

from kpi_sync.domain.models import TrelloCardEntry
from kpi_sync.errors import DatabaseConnectionError, EmptyTrelloCardsError, MissingParameterError
from kpi_sync.storage.abstract import OperationResult
from kpi_sync.storage.struct_csv import StructCsvExporter
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)

CSV_NAME = "trello_entries"

INSERT_TRELLO_CARD = (
    "INSERT INTO trello_card(id, name, closed, labels, project, customer, team, type) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s)"
)


class CardClient(Protocol):
    def get_cards(self) -> List[TrelloCardEntry]: ...


class TrelloBoard:
    def __init__(
        self,
        client: Optional[CardClient],
        connection: Optional[psycopg.Connection] = None,
        directory: Path | str | None = None,
    ) -> None:
        if client is None:
            raise MissingParameterError("client")
        self._client = client
        self._conn = connection
        self._directory = directory

    def download_as_csv(self) -> OperationResult:
        """Write the board's cards to `trello_entries.csv`."""
        cards = self._client.get_cards()
        if not cards:
            log.error("Skip the creation of the Trello card entries file.")
            raise EmptyTrelloCardsError()
        log.info("Trello card entries", extra={"count": len(cards)})
        return StructCsvExporter(self._directory).download_all(cards, CSV_NAME)

    def store(self) -> OperationResult:
        """Insert the board's cards into `trello_card`, one transaction per card."""
        if self._conn is None:
            raise DatabaseConnectionError()
        cards = self._client.get_cards()
        if not cards:
            log.error("Skip the creation of the Trello card entries into the database.")
            raise EmptyTrelloCardsError()
        for card in cards:
            with self._conn.transaction():
                self._conn.execute(
                    INSERT_TRELLO_CARD,
                    (
                        card.id,
                        card.name,
                        card.closed,
                        list(card.labels),
                        card.project,
                        card.customer,
                        card.team,
                        card.type,
                    ),
                )
        return OperationResult(operation="store_trello_cards", target="trello_card", rows=len(cards))


__all__ = ["TrelloBoard", "CardClient", "CSV_NAME"]

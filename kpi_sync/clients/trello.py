"""
Trello REST API client.

Reads every card of the configured board and classifies each card's labels by
color into project, customer, team and card type.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import requests

from kpi_sync.config import Settings
from kpi_sync.domain.models import TrelloCardEntry
from kpi_sync.errors import MissingParameterError

TRELLO_API_URL = "https://api.trello.com/1"


class TrelloClient:
    def __init__(
        self,
        app_key: str,
        api_token: str,
        board_id: str,
        *,
        project_colors: Sequence[str] = (),
        customer_colors: Sequence[str] = (),
        team_colors: Sequence[str] = (),
        card_type_colors: Sequence[str] = (),
        session: Optional[requests.Session] = None,
        base_url: str = TRELLO_API_URL,
        timeout_s: int = 30,
    ) -> None:
        for parameter, value in (
            ("app_key", app_key),
            ("api_token", api_token),
            ("board_id", board_id),
        ):
            if not value:
                raise MissingParameterError(parameter)
        self._app_key = app_key
        self._api_token = api_token
        self.board_id = board_id
        self.project_colors = list(project_colors)
        self.customer_colors = list(customer_colors)
        self.team_colors = list(team_colors)
        self.card_type_colors = list(card_type_colors)
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "TrelloClient":
        return cls(
            settings.trello_app_key,
            settings.trello_api_token,
            settings.trello_board_id,
            project_colors=settings.trello_label_project_color,
            customer_colors=settings.trello_label_customer_color,
            team_colors=settings.trello_label_team_color,
            card_type_colors=settings.trello_label_card_type_color,
            **kwargs,
        )

    def get_cards(self) -> List[TrelloCardEntry]:
        """Retrieve all the cards of the board."""
        resp = self._session.get(
            f"{self._base_url}/boards/{self.board_id}/cards",
            params={
                "key": self._app_key,
                "token": self._api_token,
                "fields": "id,name,closed,labels",
            },
            timeout=self._timeout_s,
        )
        resp.raise_for_status()
        return [self._to_entry(card) for card in resp.json()]

    def _to_entry(self, card: Dict[str, Any]) -> TrelloCardEntry:
        labels: List[str] = []
        classified = {"project": "", "customer": "", "team": "", "type": ""}
        for label in card.get("labels") or []:
            name = label.get("name") or ""
            color = label.get("color")
            labels.append(name)
            # The last matching label wins.
            if color in self.project_colors:
                classified["project"] = name
            if color in self.customer_colors:
                classified["customer"] = name
            if color in self.team_colors:
                classified["team"] = name
            if color in self.card_type_colors:
                classified["type"] = name
        return TrelloCardEntry(
            id=card["id"],
            name=card.get("name") or "",
            closed=bool(card.get("closed", False)),
            labels=labels,
            **classified,
        )


__all__ = ["TrelloClient", "TRELLO_API_URL"]

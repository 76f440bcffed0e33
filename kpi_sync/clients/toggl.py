"""
Toggl Track API v9 client.

Fetches the time entries of a date range and resolves each entry's project name.
Project lookups are cached on the client instance for its lifetime.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

import requests

from kpi_sync.config import Settings
from kpi_sync.domain.models import TogglTimeEntry
from kpi_sync.errors import MissingParameterError
from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)

TOGGL_API_URL = "https://api.track.toggl.com/api/v9"


class ProjectCache:
    """
    Project id -> project name lookups made by one client.

    Entries never expire; call `clear()` to force fresh lookups, e.g. before
    reusing a long-lived client for another run.
    """

    def __init__(self) -> None:
        self._names: Dict[int, str] = {}

    def get(self, project_id: int) -> Optional[str]:
        return self._names.get(project_id)

    def put(self, project_id: int, name: str) -> None:
        self._names[project_id] = name

    def clear(self) -> None:
        self._names.clear()

    def __contains__(self, project_id: object) -> bool:
        return project_id in self._names

    def __len__(self) -> int:
        return len(self._names)


class TogglClient:
    """
    Toggl Track HTTP client authenticated with an API token.
    """

    def __init__(
        self,
        api_token: str,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = TOGGL_API_URL,
        timeout_s: int = 30,
    ) -> None:
        if not api_token:
            raise MissingParameterError("api_token")
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.auth = (api_token, "api_token")
        self.projects = ProjectCache()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "TogglClient":
        return cls(settings.toggl_api_token, **kwargs)

    def get_range(self, start: date, end: date) -> List[TogglTimeEntry]:
        """
        Retrieve the time entries between the start of `start` and the end of `end` (UTC).

        Running entries (no stop time yet) are skipped.
        """
        params = {
            "start_date": _day_bound(start, time(0, 0, 0)),
            "end_date": _day_bound(end, time(23, 59, 59)),
        }
        time_entries = self._get_json("/me/time_entries", params=params) or []

        entries: List[TogglTimeEntry] = []
        for raw in time_entries:
            if raw.get("stop") is None:
                log.debug("Skipping running time entry", extra={"id": raw.get("id")})
                continue
            workspace_id = raw.get("workspace_id") or raw.get("wid") or 0
            project_id = raw.get("project_id") or raw.get("pid") or 0
            entries.append(
                TogglTimeEntry(
                    id=raw["id"],
                    description=raw.get("description") or "",
                    start=raw["start"],
                    stop=raw["stop"],
                    duration=raw.get("duration", 0),
                    billable=bool(raw.get("billable", False)),
                    workspace_id=workspace_id,
                    project_id=project_id,
                    project_name=self.get_project_name(workspace_id, project_id),
                    tags=raw.get("tags") or (),
                    trello_card_id="",
                )
            )
        return entries

    def get_project_name(self, workspace_id: int, project_id: int) -> str:
        """Return the project name, fetching it once per project id."""
        if not project_id:
            return ""
        cached = self.projects.get(project_id)
        if cached is not None:
            return cached
        project = self._get_json(f"/workspaces/{workspace_id}/projects/{project_id}") or {}
        name = project.get("name") or ""
        self.projects.put(project_id, name)
        return name

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        resp = self._session.get(
            f"{self._base_url}{path}", params=params, timeout=self._timeout_s
        )
        resp.raise_for_status()
        return resp.json()


def _day_bound(day: date, at: time) -> str:
    return datetime.combine(day, at, tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")


__all__ = ["TogglClient", "ProjectCache", "TOGGL_API_URL"]

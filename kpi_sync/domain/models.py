"""
Domain models for toggl-trello-kpi.

Defines the two record shapes synchronised into PostgreSQL, aligned with the
`toggl_time` and `trello_card` tables created by `kpi_sync.infrastructure.schema`.
Field names match the table columns so CSV files exported from a table and from
the API services can be imported with the same shape.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from kpi_sync.domain.fields import Int64, TextSequence, UInt64


class TogglTimeEntry(BaseModel):
    """
    One Toggl Track time entry, as stored in the `toggl_time` table.
    """

    id: UInt64 = Field(..., description="Toggl time entry id.")
    description: str = Field("", description="Free text description of the entry.")
    start: datetime = Field(..., description="Start of the entry (UTC).")
    stop: datetime = Field(..., description="End of the entry (UTC).")
    duration: Int64 = Field(..., description="Duration in seconds.")
    billable: bool = Field(False, description="Whether the entry is billable.")
    workspace_id: UInt64 = Field(..., description="Toggl workspace id.")
    project_id: UInt64 = Field(0, description="Toggl project id, 0 when unassigned.")
    project_name: str = Field("", description="Name of the Toggl project.")
    tags: TextSequence = Field((), description="Toggl tags.")
    trello_card_id: str = Field("", description="Trello card linked to this entry.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


class TrelloCardEntry(BaseModel):
    """
    One Trello card, as stored in the `trello_card` table.
    """

    id: str = Field(..., description="Trello card id.")
    name: str = Field(..., description="Card title.")
    closed: bool = Field(False, description="Whether the card is archived.")
    labels: TextSequence = Field((), description="Names of all card labels.")
    project: str = Field("", description="Label name matching a project color.")
    customer: str = Field("", description="Label name matching a customer color.")
    team: str = Field("", description="Label name matching a team color.")
    type: str = Field("", description="Label name matching a card type color.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


__all__ = ["TogglTimeEntry", "TrelloCardEntry"]

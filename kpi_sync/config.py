"""
Configuration settings for toggl-trello-kpi.

Uses Pydantic Settings to load environment variables (or a `.env` file) for the
Toggl and Trello credentials, the PostgreSQL connection pool and logging.
Environment names mirror the keys of the `settings.yml` file used by earlier deployments.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LabelColors = Annotated[List[str], NoDecode]


class Settings(BaseSettings):
    # Application
    log_level: str = Field("info", alias="APPLICATION_LOG_LEVEL")
    log_json: bool = Field(False, alias="APPLICATION_LOG_JSON")

    # Toggl
    toggl_api_token: str = Field("", alias="TOGGL_API_TOKEN")

    # Trello
    trello_app_key: str = Field("", alias="TRELLO_APP_KEY")
    trello_api_token: str = Field("", alias="TRELLO_API_TOKEN")
    trello_board_id: str = Field("", alias="TRELLO_BOARD_ID")
    trello_label_project_color: LabelColors = Field(
        default_factory=list, alias="TRELLO_LABEL_PROJECT_COLOR"
    )
    trello_label_customer_color: LabelColors = Field(
        default_factory=list, alias="TRELLO_LABEL_CUSTOMER_COLOR"
    )
    trello_label_team_color: LabelColors = Field(
        default_factory=list, alias="TRELLO_LABEL_TEAM_COLOR"
    )
    trello_label_card_type_color: LabelColors = Field(
        default_factory=list, alias="TRELLO_LABEL_CARD_TYPE_COLOR"
    )

    # Database
    db_host: str = Field("localhost", alias="DATABASE_HOST")
    db_port: int = Field(5432, alias="DATABASE_PORT")
    db_name: str = Field("toggl_trello_kpi", alias="DATABASE_NAME")
    db_user: str = Field("postgres", alias="DATABASE_USERNAME")
    db_password: str = Field("postgres", alias="DATABASE_PASSWORD")
    db_max_open_connections: int = Field(10, alias="DATABASE_MAX_OPEN_CONNECTIONS")
    db_max_idle_connections: int = Field(2, alias="DATABASE_MAX_IDLE_CONNECTIONS")
    db_max_lifetime_minutes: int = Field(30, alias="DATABASE_MAX_LIFETIME_IN_MINUTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator(
        "trello_label_project_color",
        "trello_label_customer_color",
        "trello_label_team_color",
        "trello_label_card_type_color",
        mode="before",
    )
    @classmethod
    def _split_colors(cls, value: Any) -> Any:
        # Accept "green,blue" as well as a JSON-style list.
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                stripped = stripped.strip("[]")
            return [c.strip().strip("\"'") for c in stripped.split(",") if c.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]

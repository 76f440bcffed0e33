"""
Table definitions for the `toggl_time` and `trello_card` tables.
"""

from __future__ import annotations

import psycopg

from kpi_sync.utils.logging import get_logger

log = get_logger(__name__)

TOGGL_TIME_DDL = """
CREATE TABLE IF NOT EXISTS toggl_time
(
    id              varchar(255) NOT NULL,
    description     text NOT NULL,
    start           timestamptz NOT NULL,
    stop            timestamptz NOT NULL,
    duration        bigint NOT NULL,
    billable        boolean NOT NULL,
    workspace_id    bigint NOT NULL,
    project_id      bigint NOT NULL,
    project_name    varchar(255) NOT NULL DEFAULT '',
    tags            varchar(255)[] NOT NULL DEFAULT array[]::varchar(255)[],
    trello_card_id  varchar(255) NOT NULL DEFAULT '',
    PRIMARY KEY(id)
);
"""

TRELLO_CARD_DDL = """
CREATE TABLE IF NOT EXISTS trello_card
(
    id              varchar(255) NOT NULL,
    name            varchar(255) NOT NULL,
    closed          boolean NOT NULL,
    labels          varchar(255)[] NOT NULL DEFAULT array[]::varchar(255)[],
    project         varchar(255) NOT NULL DEFAULT '',
    customer        varchar(255) NOT NULL DEFAULT '',
    team            varchar(255) NOT NULL DEFAULT '',
    type            varchar(255) NOT NULL DEFAULT '',
    PRIMARY KEY(id)
);
"""

TABLE_DDL = {
    "toggl_time": TOGGL_TIME_DDL,
    "trello_card": TRELLO_CARD_DDL,
}


def init_database(conn: psycopg.Connection) -> None:
    """
    Create the `toggl_time` and `trello_card` tables if they don't exist.

    Each statement runs in its own transaction, committed on success and rolled
    back on error.
    """
    for table, ddl in TABLE_DDL.items():
        with conn.transaction():
            conn.execute(ddl)
        log.debug("Table ready", extra={"table": table})


__all__ = ["init_database", "TABLE_DDL"]

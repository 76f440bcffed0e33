from __future__ import annotations

import csv
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import psycopg
import pytest
from pydantic import BaseModel

from kpi_sync.domain.fields import Int64, Shape, TextSequence, UInt64
from kpi_sync.domain.models import TogglTimeEntry, TrelloCardEntry
from kpi_sync.errors import DatabaseConnectionError, FieldCoercionError, UnknownColumnError
from kpi_sync.storage.csv_insert import CsvInserter, build_insert
from kpi_sync.storage.struct_csv import StructCsvExporter

CARD_INSERT = "INSERT INTO trello_card(id,name,closed,labels) VALUES (%s,%s,%s,%s)"
UINT64_MAX = 2**64 - 1


class _Reading(BaseModel):
    id: UInt64
    ratio: float


class _Row(BaseModel):
    a: str
    b: Int64
    c: UInt64
    d: bool
    e: datetime
    f: TextSequence


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_build_insert_uses_header_columns_and_placeholders() -> None:
    statement = build_insert("trello_card", ["id", "name", "closed", "labels"])

    assert statement.as_string(None) == CARD_INSERT


def test_insert_parses_cells_by_field_kind(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(tmp_path / "cards.csv", 'id,name,closed,labels\nc1,Card,true,"a,b"\n')

    result = CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert conn.executed == [(CARD_INSERT, ["c1", "Card", True, ["a", "b"]])]
    assert conn.commits == 1
    assert result["rows"] == 1
    assert not result.get("skipped")


def test_insert_accepts_record_instance_or_shape(tmp_path: Path, make_connection) -> None:
    path = _write(tmp_path / "cards.csv", "name,id\nCard,c1\n")
    reference = TrelloCardEntry(id="ref", name="ref")

    for shape in (reference, Shape.of(TrelloCardEntry)):
        conn = make_connection()
        CsvInserter(conn).insert(path, "trello_card", shape)
        assert conn.executed == [
            ("INSERT INTO trello_card(name,id) VALUES (%s,%s)", ["Card", "c1"])
        ]


def test_insert_binds_timestamps_and_integers(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(
        tmp_path / "time.csv",
        "id,start,duration,billable\n"
        "42,2021-01-01T10:00:00.5+01:00,-1,F\n",
    )

    CsvInserter(conn).insert(path, "toggl_time", TogglTimeEntry)

    _, params = conn.executed[0]
    assert params == [42, datetime(2021, 1, 1, 9, 0, 0, 500000, tzinfo=timezone.utc), -1, False]


def test_rows_are_committed_one_by_one(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(tmp_path / "cards.csv", "id,name\nc1,One\nc2,Two\n\nc3,Three\n")

    result = CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert [params for _, params in conn.executed] == [["c1", "One"], ["c2", "Two"], ["c3", "Three"]]
    assert conn.commits == 3
    assert result["rows"] == 3


@pytest.mark.parametrize("content", ["", "\n\n"])
def test_empty_file_is_a_no_op(tmp_path: Path, make_connection, content: str) -> None:
    conn = make_connection()
    path = _write(tmp_path / "empty.csv", content)

    result = CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert conn.executed == []
    assert result["rows"] == 0
    assert result["skipped"] is True


def test_header_only_file_inserts_nothing(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(tmp_path / "header.csv", "id,name\n")

    result = CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert conn.executed == []
    assert result["rows"] == 0


def test_coercion_failure_stops_the_import(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(tmp_path / "cards.csv", "id,closed\nc1,true\nc2,maybe\nc3,false\n")

    with pytest.raises(FieldCoercionError) as excinfo:
        CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert excinfo.value.row == 2
    assert excinfo.value.column == "closed"
    assert excinfo.value.value == "maybe"
    # Rows before the failing one stay committed.
    assert [params for _, params in conn.executed] == [["c1", True]]


def test_unknown_header_column_raises(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(tmp_path / "cards.csv", "id,colour\nc1,red\n")

    with pytest.raises(UnknownColumnError):
        CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert conn.executed == []


def test_ragged_row_raises_csv_error(tmp_path: Path, make_connection) -> None:
    conn = make_connection()
    path = _write(tmp_path / "cards.csv", "id,name\nc1,One,extra\n")

    with pytest.raises(csv.Error):
        CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert conn.executed == []


def test_database_error_rolls_back_and_propagates(tmp_path: Path, make_connection) -> None:
    conn = make_connection(fail_when=lambda params: params is not None and params[0] == "c2")
    path = _write(tmp_path / "cards.csv", "id,name\nc1,One\nc2,Two\nc3,Three\n")

    with pytest.raises(psycopg.DataError):
        CsvInserter(conn).insert(path, "trello_card", TrelloCardEntry)

    assert conn.commits == 1
    assert conn.rollbacks == 1
    assert [params for _, params in conn.executed] == [["c1", "One"]]


def test_unsupported_kind_passes_raw_text(
    tmp_path: Path, make_connection, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.ERROR, logger="kpi_sync.storage.csv_insert")
    conn = make_connection()
    path = _write(tmp_path / "readings.csv", "id,ratio\n7,0.25\n")

    CsvInserter(conn).insert(path, "reading", _Reading)

    assert conn.executed[0][1] == [7, "0.25"]
    assert any(r.getMessage() == "Cannot convert the data type" for r in caplog.records)


def test_missing_file_raises_os_error(tmp_path: Path, make_connection) -> None:
    with pytest.raises(OSError):
        CsvInserter(make_connection()).insert(tmp_path / "absent.csv", "trello_card", TrelloCardEntry)


def test_missing_connection_raises() -> None:
    with pytest.raises(DatabaseConnectionError):
        CsvInserter(None)


def test_exported_records_import_with_the_same_values(tmp_path: Path, make_connection) -> None:
    plus_two = timezone(timedelta(hours=2))
    records = [
        _Row(a="x", b=75, c=9, d=True, e=datetime(2021, 1, 1, tzinfo=timezone.utc), f=("a", "b")),
        _Row(
            a='say "hi", then\nleave',
            b=-(2**63),
            c=UINT64_MAX,
            d=False,
            e=datetime(2021, 6, 1, 12, 0, 0, 123456, tzinfo=plus_two),
            f=("only",),
        ),
    ]
    StructCsvExporter(tmp_path).download_all(records, "t")
    conn = make_connection()

    result = CsvInserter(conn).insert(tmp_path / "t.csv", "t", _Row)

    assert result["rows"] == len(records)
    assert conn.executed[0][0] == "INSERT INTO t(a,b,c,d,e,f) VALUES (%s,%s,%s,%s,%s,%s)"
    assert conn.executed[0][1] == ["x", 75, 9, True, datetime(2021, 1, 1, tzinfo=timezone.utc), ["a", "b"]]
    for record, (_, params) in zip(records, conn.executed):
        assert params == [record.a, record.b, record.c, record.d, record.e, list(record.f)]

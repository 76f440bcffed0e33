from __future__ import annotations

import json
import logging

import pytest

from kpi_sync.utils.logging import _json_formatter, resolve_log_level

EXPECTED_ROWS = 10
EXPECTED_FAILED = 2


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.table = "toggl_time"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["table"] == "toggl_time"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"failed": EXPECTED_FAILED}

    payload = json.loads(_json_formatter(record))

    assert payload["failed"] == EXPECTED_FAILED
    assert "extra" not in payload


def test_json_formatter_stringifies_unserialisable_values() -> None:
    record = _record()
    record.file = object()

    payload = json.loads(_json_formatter(record))

    assert payload["file"].startswith("<object object")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("debug", "DEBUG"),
        ("", "INFO"),
        ("INFO", "INFO"),
        ("warn", "WARNING"),
        ("error", "ERROR"),
        ("dpanic", "CRITICAL"),
        ("panic", "CRITICAL"),
        ("fatal", "CRITICAL"),
    ],
)
def test_resolve_log_level(name: str, expected: str) -> None:
    assert resolve_log_level(name) == expected


def test_resolve_log_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="verbose"):
        resolve_log_level("verbose")

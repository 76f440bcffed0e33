"""
Field kinds, field values and record shapes.

A record is a frozen pydantic model whose fields each carry one semantic kind
from a fixed whitelist. `Shape` is the static, per-model table of
``(column, kind, accessor)`` entries used by both the CSV export path and the
CSV import path; `FieldValue` is the tagged union every field converts to and
from.

Kinds are declared with the annotated aliases below or inferred from plain
``str``, ``bool``, ``int`` and ``datetime`` annotations:

    class TimeEntry(BaseModel):
        id: UInt64
        description: str
        start: datetime
        tags: TextSequence = ()
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from operator import attrgetter
from typing import Annotated, Any, Callable, Dict, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel, Field

from kpi_sync.errors import FieldCoercionError, UnknownColumnError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class FieldKind(str, enum.Enum):
    """Semantic kinds understood by the CSV codec."""

    TEXT = "text"
    INT64 = "int64"
    UINT64 = "uint64"
    BOOL = "bool"
    TIMESTAMP = "timestamp"
    TEXT_SEQUENCE = "text-sequence"


Int64 = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX), FieldKind.INT64]
UInt64 = Annotated[int, Field(ge=0, le=UINT64_MAX), FieldKind.UINT64]
TextSequence = Annotated[Tuple[str, ...], FieldKind.TEXT_SEQUENCE]

# Matched with fullmatch: a trailing newline is not a valid cell.
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_UINT_PATTERN = re.compile(r"[0-9]+")
_RFC3339_PATTERN = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)
_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def format_timestamp(value: datetime) -> str:
    """
    Render a datetime as RFC 3339 in UTC, trimming trailing zeros of the fraction.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_timestamp(text: str) -> datetime:
    """
    Parse an RFC 3339 timestamp with up to nine fractional digits.

    Fractions finer than a microsecond are truncated. The result is UTC.
    """
    match = _RFC3339_PATTERN.fullmatch(text)
    if match is None:
        raise ValueError("not an RFC 3339 timestamp")
    fraction = (match.group("fraction") or "")[:6]
    offset = match.group("offset").upper()
    normalised = f"{match.group('date')}T{match.group('time')}"
    if fraction:
        normalised += "." + fraction.ljust(6, "0")
    normalised += "+00:00" if offset == "Z" else offset
    return datetime.fromisoformat(normalised).astimezone(timezone.utc)


def _parse_int(text: str, lower: int, upper: int, pattern: re.Pattern[str]) -> int:
    if not pattern.fullmatch(text):
        raise ValueError("invalid syntax")
    value = int(text)
    if value < lower or value > upper:
        raise ValueError("value out of range")
    return value


def _parse_bool(text: str) -> bool:
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError("invalid syntax")


_PARSERS: Dict[FieldKind, Callable[[str], Any]] = {
    FieldKind.TEXT: str,
    FieldKind.INT64: lambda text: _parse_int(text, INT64_MIN, INT64_MAX, _INT_PATTERN),
    FieldKind.UINT64: lambda text: _parse_int(text, 0, UINT64_MAX, _UINT_PATTERN),
    FieldKind.BOOL: _parse_bool,
    FieldKind.TIMESTAMP: parse_timestamp,
    FieldKind.TEXT_SEQUENCE: lambda text: tuple(text.split(",")),
}


@dataclass(frozen=True)
class FieldValue:
    """One field of one record, tagged with its kind."""

    kind: FieldKind
    value: Any

    def to_text(self) -> str:
        """Canonical CSV text for the value."""
        if self.kind is FieldKind.TEXT:
            return str(self.value)
        if self.kind in (FieldKind.INT64, FieldKind.UINT64):
            return str(int(self.value))
        if self.kind is FieldKind.BOOL:
            return "true" if self.value else "false"
        if self.kind is FieldKind.TIMESTAMP:
            return format_timestamp(self.value)
        return ",".join(self.value)

    def to_param(self) -> Any:
        """Value as a database driver parameter; sequences become lists (SQL arrays)."""
        if self.kind is FieldKind.TEXT_SEQUENCE:
            return list(self.value)
        return self.value

    @classmethod
    def parse(cls, kind: FieldKind, text: str, column: str = "") -> "FieldValue":
        """
        Parse CSV text into a value of the given kind.

        Raises
        ------
        FieldCoercionError
            If the text is not a valid representation of the kind.
        """
        try:
            return cls(kind, _PARSERS[kind](text))
        except ValueError as exc:
            raise FieldCoercionError(column, kind.value, text, reason=str(exc)) from exc


@dataclass(frozen=True)
class ShapeField:
    """One entry of a record shape: column name, kind and accessor."""

    column: str
    attribute: str
    kind: Optional[FieldKind]
    annotation: Any
    accessor: Callable[[Any], Any]

    @property
    def supported(self) -> bool:
        return self.kind is not None

    def value_of(self, record: Any) -> FieldValue:
        if self.kind is None:
            raise TypeError(f"field {self.column!r} has no supported kind")
        return FieldValue(self.kind, self.accessor(record))

    def describe_type(self) -> str:
        return getattr(self.annotation, "__name__", None) or repr(self.annotation)


def _kind_from_annotation(annotation: Any, metadata: list[Any]) -> Optional[FieldKind]:
    for item in metadata:
        if isinstance(item, FieldKind):
            return item
    if get_origin(annotation) is Annotated:
        args = get_args(annotation)
        return _kind_from_annotation(args[0], list(args[1:]))
    if annotation is str:
        return FieldKind.TEXT
    if annotation is bool:
        return FieldKind.BOOL
    if annotation is int:
        return FieldKind.INT64
    if annotation is datetime:
        return FieldKind.TIMESTAMP
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin in (list, tuple) and args and args[0] is str and args[-1] in (str, Ellipsis):
        return FieldKind.TEXT_SEQUENCE
    return None


class Shape:
    """
    Ordered field table of one record model.

    Built once per model class (see `Shape.of`) and shared by the exporters and
    the importer, so column order, names and kinds always agree.
    """

    _cache: Dict[type, "Shape"] = {}

    def __init__(self, model: Type[BaseModel]) -> None:
        self.model = model
        self.name = model.__name__
        fields = []
        for attribute, info in model.model_fields.items():
            fields.append(
                ShapeField(
                    column=info.alias or attribute,
                    attribute=attribute,
                    kind=_kind_from_annotation(info.annotation, list(info.metadata)),
                    annotation=info.annotation,
                    accessor=attrgetter(attribute),
                )
            )
        self.fields: Tuple[ShapeField, ...] = tuple(fields)
        self._by_column = {f.column: f for f in self.fields}
        self._by_column.update({f.attribute: f for f in self.fields if f.attribute not in self._by_column})

    @classmethod
    def of(cls, record: Union[BaseModel, Type[BaseModel]]) -> "Shape":
        """Return the cached shape of a record instance or record class."""
        model = record if isinstance(record, type) else type(record)
        if not issubclass(model, BaseModel):
            raise TypeError(f"{model.__name__} is not a record model")
        shape = cls._cache.get(model)
        if shape is None:
            shape = cls(model)
            cls._cache[model] = shape
        return shape

    @property
    def columns(self) -> list[str]:
        return [f.column for f in self.fields]

    def field(self, column: str) -> ShapeField:
        """Look up a field by column name (alias) or attribute name."""
        try:
            return self._by_column[column]
        except KeyError:
            raise UnknownColumnError(column, self.name) from None

    def __contains__(self, column: object) -> bool:
        return column in self._by_column

    def __repr__(self) -> str:
        return f"Shape({self.name}, columns={self.columns!r})"


__all__ = [
    "FieldKind",
    "FieldValue",
    "Int64",
    "UInt64",
    "TextSequence",
    "Shape",
    "ShapeField",
    "format_timestamp",
    "parse_timestamp",
]

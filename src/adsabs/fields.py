"""Declarative field schemas shared by the request builder and the decoder.

A record type is a dataclass whose attributes are declared with
:func:`ads_field` and which is decorated with :func:`record`::

    @record
    @dataclass
    class Paper:
        bibcode: str = ads_field(FieldKind.STR, required=True)
        title: str = ads_field(FieldKind.TEXT)

``schema_of(Paper)`` then returns the :class:`Schema` used both to build the
``fl`` parameter of a search and to decode each returned document, so the
fields requested and the fields read always come from the same declaration.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from adsabs.errors import DecodeError, InvalidQuery, MissingRequiredField, TypeMismatch

_METADATA_KEY = "adsabs"
_SCHEMA_ATTR = "__ads_schema__"
_INT_RE = re.compile(r"^-?\d+$")


class _Unset:
    """Marker for a field the API did not return."""

    _instance: Optional[_Unset] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNSET: Any = _Unset()


def is_set(value) -> bool:
    return value is not UNSET


class FieldKind(Enum):
    STR = "string"
    TEXT = "string or list of strings"
    STR_LIST = "list of strings"
    INT = "integer"
    FLOAT = "number"
    DATETIME = "ISO-8601 timestamp"
    ENUM = "enumerated string"
    ENUM_LIST = "list of enumerated strings"


@dataclass(frozen=True)
class FieldSpec:
    """One API field bound to one record attribute."""

    attr: str
    name: str
    kind: FieldKind
    required: bool = False
    choices: Optional[type] = None

    def coerce(self, value):
        kind = self.kind
        if kind is FieldKind.STR:
            if isinstance(value, str):
                return value
        elif kind is FieldKind.TEXT:
            if isinstance(value, str):
                return value
            if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
                return value[0]
        elif kind is FieldKind.STR_LIST:
            if isinstance(value, list) and all(isinstance(v, str) for v in value):
                return list(value)
        elif kind is FieldKind.INT:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, str) and _INT_RE.match(value.strip()):
                try:
                    return int(value)
                except ValueError:
                    pass
        elif kind is FieldKind.FLOAT:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                try:
                    return float(value)
                except OverflowError:
                    pass
        elif kind is FieldKind.DATETIME:
            if isinstance(value, str):
                try:
                    return datetime.fromisoformat(value.replace("Z", "+00:00"))
                except ValueError:
                    pass
        elif kind is FieldKind.ENUM:
            if isinstance(value, str):
                return self._choice(value)
        elif kind is FieldKind.ENUM_LIST:
            if isinstance(value, list) and all(isinstance(v, str) for v in value):
                return [self._choice(v) for v in value]
        raise TypeMismatch(self.name, kind.value, value)

    def _choice(self, value: str):
        try:
            return self.choices(value.lower())
        except ValueError:
            raise TypeMismatch(self.name, f"one of {self.choices.__name__}", value) from None


def ads_field(
    kind: FieldKind,
    *,
    name: Optional[str] = None,
    required: bool = False,
    choices: Optional[type] = None,
):
    """Declare a record attribute backed by the API field ``name``.

    ``name`` defaults to the attribute name. Enumerated kinds need
    ``choices``, an :class:`~enum.Enum` whose values are the API strings.
    """
    if kind in (FieldKind.ENUM, FieldKind.ENUM_LIST) and choices is None:
        raise TypeError(f"{kind.name} fields need an enum passed as choices")
    return dataclasses.field(
        default=UNSET,
        metadata={_METADATA_KEY: {"name": name, "kind": kind, "required": required, "choices": choices}},
    )


@dataclass(frozen=True)
class Schema:
    """The fields a record type requests and decodes."""

    record_type: type
    fields: tuple[FieldSpec, ...]
    default_fields: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def fl(self) -> str:
        return ",".join(self.names)

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)

    def select(self, names: Iterable[str]) -> Schema:
        """Narrow the schema to ``names``, keeping the caller's order.

        Raises ``InvalidQuery`` for names the record cannot decode or when
        a required field would not be requested.
        """
        by_name = {f.name: f for f in self.fields}
        wanted: list[str] = []
        for n in names:
            n = n.strip()
            if n and n not in wanted:
                wanted.append(n)
        if not wanted:
            raise InvalidQuery("at least one field must be requested")

        unknown = [n for n in wanted if n not in by_name]
        if unknown:
            raise InvalidQuery(
                f"{self.record_type.__name__} cannot decode field(s): {', '.join(unknown)}"
            )
        missing = [n for n in self.required if n not in wanted]
        if missing:
            raise InvalidQuery(
                f"{self.record_type.__name__} requires field(s): {', '.join(missing)}"
            )
        return Schema(self.record_type, tuple(by_name[n] for n in wanted), self.default_fields)

    def default(self) -> Schema:
        if not self.default_fields:
            return self
        return self.select(self.default_fields)

    def decode(self, doc: Mapping[str, Any]):
        """Build a record from one API document."""
        if not isinstance(doc, Mapping):
            raise DecodeError(f"expected a JSON object, got {type(doc).__name__}")
        values = {}
        for spec in self.fields:
            raw = doc.get(spec.name)
            if spec.kind is FieldKind.TEXT and raw == []:
                raw = None
            if raw is None:
                if spec.required:
                    raise MissingRequiredField(spec.name)
                continue
            values[spec.attr] = spec.coerce(raw)
        return self.record_type(**values)


def record(cls=None, *, default_fields: Optional[Iterable[str]] = None):
    """Attach a :class:`Schema` to a dataclass declared with ``ads_field``."""

    def wrap(cls):
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{cls.__name__} must be a dataclass")
        specs = []
        for f in dataclasses.fields(cls):
            meta = f.metadata.get(_METADATA_KEY)
            if meta is None:
                continue
            specs.append(
                FieldSpec(
                    attr=f.name,
                    name=meta["name"] or f.name,
                    kind=meta["kind"],
                    required=meta["required"],
                    choices=meta["choices"],
                )
            )
        names = [s.name for s in specs]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise TypeError(f"{cls.__name__} declares field(s) twice: {', '.join(dupes)}")

        schema = Schema(cls, tuple(specs))
        if default_fields is not None:
            schema = Schema(cls, tuple(specs), tuple(default_fields))
            schema.default()  # fail at declaration if the defaults are invalid
        setattr(cls, _SCHEMA_ATTR, schema)
        return cls

    if cls is None:
        return wrap
    return wrap(cls)


def schema_of(record_type: type) -> Schema:
    schema = getattr(record_type, _SCHEMA_ATTR, None)
    if schema is None:
        raise TypeError(f"{record_type.__name__} is not an ADS record type")
    return schema


def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def to_dict(rec) -> dict[str, Any]:
    """Return the set fields of a record keyed by API name."""
    out: dict[str, Any] = {}
    for spec in schema_of(type(rec)).fields:
        value = getattr(rec, spec.attr)
        if value is not UNSET:
            out[spec.name] = _jsonable(value)
    return out

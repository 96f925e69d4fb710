"""Build search queries and serialize them into ADS request parameters."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Union
from urllib.parse import urlencode

from adsabs.errors import InvalidQuery
from adsabs.fields import Schema, schema_of
from adsabs.models import Article

# The maximum number of rows the API returns per request
MAX_ROWS = 2000
DEFAULT_ROWS = 10

# Sortable fields documented by the ADS search API
SORT_FIELDS = frozenset({
    "author_count",
    "bibcode",
    "citation_count",
    "citation_count_norm",
    "classic_factor",
    "date",
    "entry_date",
    "first_author",
    "id",
    "read_count",
    "score",
})

_FIELD_RE = re.compile(r"^[a-z][a-z0-9_]*$")
_NEEDS_QUOTES = re.compile(r'[\s:()\[\]{}"]')
_PHRASE = re.compile(r'^"(?:[^"\\]|\\.)+"$')


def _check_field(name: str) -> str:
    if not isinstance(name, str) or not _FIELD_RE.match(name):
        raise InvalidQuery(f"invalid field name: {name!r}")
    return name


class Direction(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Sort:
    """A sort field and direction; descending unless asked otherwise."""

    field: str
    direction: Direction = Direction.DESC

    @classmethod
    def asc(cls, field: str) -> Sort:
        return cls(field, Direction.ASC)

    @classmethod
    def desc(cls, field: str) -> Sort:
        return cls(field, Direction.DESC)

    @classmethod
    def parse(cls, spec: str) -> Sort:
        """Parse ``"date"``, ``"date asc"`` or ``"citation_count desc"``."""
        parts = spec.split()
        if len(parts) == 1:
            return cls(parts[0])
        if len(parts) == 2:
            try:
                return cls(parts[0], Direction(parts[1].lower()))
            except ValueError:
                pass
        raise InvalidQuery(f"invalid sort specification: {spec!r}")

    def __str__(self) -> str:
        return f"{self.field} {self.direction.value}"


@dataclass(frozen=True)
class Term:
    """``field:value``"""

    field: str
    value: str

    def __str__(self) -> str:
        _check_field(self.field)
        value = str(self.value)
        if not value:
            raise InvalidQuery(f"empty value for field '{self.field}'")
        if _NEEDS_QUOTES.search(value) and not _PHRASE.match(value):
            value = '"' + value.replace('"', '\\"') + '"'
        return f"{self.field}:{value}"


@dataclass(frozen=True)
class Range:
    """``field:[low TO high]``; an open end is written as ``*``."""

    field: str
    low: Optional[Union[int, str]] = None
    high: Optional[Union[int, str]] = None

    def __str__(self) -> str:
        _check_field(self.field)
        if self.low is None and self.high is None:
            raise InvalidQuery(f"range on '{self.field}' needs at least one bound")
        low = "*" if self.low is None else str(self.low)
        high = "*" if self.high is None else str(self.high)
        return f"{self.field}:[{low} TO {high}]"


Filter = Union[Term, Range]


@dataclass(frozen=True)
class Query:
    """A single search request.

    ``record`` is the record type the results decode into. ``fields``
    narrows the fields requested; when omitted, the record's default field
    list is used.
    """

    text: str = ""
    filters: tuple[Filter, ...] = ()
    sort: tuple[Sort, ...] = ()
    start: int = 0
    rows: int = DEFAULT_ROWS
    record: type = Article
    fields: Optional[tuple[str, ...]] = None
    filter_queries: tuple[str, ...] = ()

    def __post_init__(self):
        filters = (self.filters,) if isinstance(self.filters, (Term, Range)) else self.filters
        object.__setattr__(self, "filters", tuple(filters))
        sorts = (self.sort,) if isinstance(self.sort, (str, Sort)) else self.sort
        object.__setattr__(
            self,
            "sort",
            tuple(Sort.parse(s) if isinstance(s, str) else s for s in sorts),
        )
        fq = (self.filter_queries,) if isinstance(self.filter_queries, str) else self.filter_queries
        object.__setattr__(self, "filter_queries", tuple(fq))
        if self.fields is not None:
            fields = (self.fields,) if isinstance(self.fields, str) else self.fields
            object.__setattr__(self, "fields", tuple(fields))

    def where(self, *filters: Filter) -> Query:
        return replace(self, filters=self.filters + filters)

    def sorted_by(self, *sorts: Union[Sort, str]) -> Query:
        return replace(self, sort=self.sort + tuple(sorts))

    def page(self, start: int, rows: int) -> Query:
        return replace(self, start=start, rows=rows)

    def select(self, *fields: str) -> Query:
        return replace(self, fields=fields)

    def filtered(self, *fq: str) -> Query:
        return replace(self, filter_queries=self.filter_queries + fq)

    def schema(self) -> Schema:
        base = schema_of(self.record)
        if self.fields is None:
            return base.default()
        return base.select(self.fields)

    def q(self) -> str:
        parts = []
        if self.text and self.text.strip():
            parts.append(self.text.strip())
        parts.extend(str(f) for f in self.filters)
        if not parts:
            raise InvalidQuery("query text or at least one filter is required")
        return " ".join(parts)


def _check_window(start, rows) -> None:
    if not isinstance(rows, int) or isinstance(rows, bool) or rows < 0:
        raise InvalidQuery(f"rows must be a non-negative integer, got {rows!r}")
    if rows > MAX_ROWS:
        raise InvalidQuery(f"rows={rows} exceeds the API maximum of {MAX_ROWS}")
    if not isinstance(start, int) or isinstance(start, bool) or start < 0:
        raise InvalidQuery(f"start must be a non-negative integer, got {start!r}")


def format_sort(sorts: Iterable[Sort]) -> str:
    out = []
    for s in sorts:
        if s.field not in SORT_FIELDS:
            raise InvalidQuery(
                f"cannot sort on '{s.field}'; sortable fields: {', '.join(sorted(SORT_FIELDS))}"
            )
        out.append(str(s))
    return ",".join(out)


def build_params(query: Query) -> list[tuple[str, str]]:
    """Return the ordered request parameters for ``query``."""
    _check_window(query.start, query.rows)
    params = [
        ("q", query.q()),
        ("fl", query.schema().fl),
        ("rows", str(query.rows)),
        ("start", str(query.start)),
    ]
    if query.sort:
        params.append(("sort", format_sort(query.sort)))
    for fq in query.filter_queries:
        if fq.strip():
            params.append(("fq", fq.strip()))
    return params


def encode_params(params: list[tuple[str, str]]) -> str:
    return urlencode(params)


def build_url(base_url: str, query: Query) -> str:
    return f"{base_url.rstrip('/')}/search/query?{encode_params(build_params(query))}"


def year_filter(spec: str) -> Filter:
    """Parse ``2020``, ``2020-2023``, ``2020-`` or ``-2023`` into a filter."""
    spec = spec.strip()
    m = re.match(r"^(\d{4})?\s*-\s*(\d{4})?$", spec)
    if m and (m.group(1) or m.group(2)):
        low = int(m.group(1)) if m.group(1) else None
        high = int(m.group(2)) if m.group(2) else None
        return Range("year", low, high)
    if re.match(r"^\d{4}$", spec):
        return Term("year", spec)
    raise InvalidQuery(f"invalid year or year range: {spec!r}")

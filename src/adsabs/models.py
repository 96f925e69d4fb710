"""Record types returned by the ADS search API.

Every attribute defaults to ``UNSET`` and is only populated when the API
returned it, so an unrequested ``citation_count`` is never confused with a
paper that has zero citations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Iterator, Mapping, Optional, TypeVar

from adsabs.fields import FieldKind, ads_field, record

T = TypeVar("T")

ABS_URL = "https://ui.adsabs.harvard.edu/abs/{bibcode}/abstract"


class Database(Enum):
    ASTRONOMY = "astronomy"
    PHYSICS = "physics"
    GENERAL = "general"


class DocType(Enum):
    ARTICLE = "article"
    EPRINT = "eprint"
    INPROCEEDINGS = "inproceedings"
    INBOOK = "inbook"
    ABSTRACT = "abstract"
    BOOK = "book"
    BOOKREVIEW = "bookreview"
    CATALOG = "catalog"
    CIRCULAR = "circular"
    ERRATUM = "erratum"
    MASTERSTHESIS = "mastersthesis"
    NEWSLETTER = "newsletter"
    OBITUARY = "obituary"
    PHDTHESIS = "phdthesis"
    PRESSRELEASE = "pressrelease"
    PROCEEDINGS = "proceedings"
    PROPOSAL = "proposal"
    SOFTWARE = "software"
    TALK = "talk"
    TECHREPORT = "techreport"
    MISC = "misc"


@record
@dataclass
class Article:
    """Bibliographic summary of a paper."""

    title: str = ads_field(FieldKind.TEXT, required=True)
    authors: list[str] = ads_field(FieldKind.STR_LIST, name="author")
    year: int = ads_field(FieldKind.INT)
    citation_count: int = ads_field(FieldKind.INT)
    bibcode: str = ads_field(FieldKind.STR)
    publication: str = ads_field(FieldKind.STR, name="pub")
    doi: list[str] = ads_field(FieldKind.STR_LIST)
    abstract: str = ads_field(FieldKind.STR)

    @property
    def url(self) -> str:
        return ABS_URL.format(bibcode=self.bibcode) if self.bibcode else ""


@record
@dataclass
class AuthorInfo:
    """Authorship details of a paper."""

    bibcode: str = ads_field(FieldKind.STR, required=True)
    authors: list[str] = ads_field(FieldKind.STR_LIST, name="author")
    first_author: str = ads_field(FieldKind.STR)
    author_count: int = ads_field(FieldKind.INT)
    affiliations: list[str] = ads_field(FieldKind.STR_LIST, name="aff")
    orcid_pub: list[str] = ads_field(FieldKind.STR_LIST)


@record
@dataclass
class CitationInfo:
    """Citation metrics and links of a paper."""

    bibcode: str = ads_field(FieldKind.STR, required=True)
    citation_count: int = ads_field(FieldKind.INT)
    read_count: int = ads_field(FieldKind.INT)
    citations: list[str] = ads_field(FieldKind.STR_LIST, name="citation")
    references: list[str] = ads_field(FieldKind.STR_LIST, name="reference")
    cite_read_boost: float = ads_field(FieldKind.FLOAT)
    classic_factor: int = ads_field(FieldKind.INT)


@record(default_fields=("author", "first_author", "bibcode", "id", "year", "title"))
@dataclass
class Document:
    """Any document in the ADS index, with every searchable field.

    Only ``author, first_author, bibcode, id, year, title`` are requested
    unless a query selects other fields.
    """

    abstract: str = ads_field(FieldKind.STR)
    ack: str = ads_field(FieldKind.STR)
    aff: list[str] = ads_field(FieldKind.STR_LIST)
    aff_id: list[str] = ads_field(FieldKind.STR_LIST)
    alternate_bibcode: list[str] = ads_field(FieldKind.STR_LIST)
    alternate_title: list[str] = ads_field(FieldKind.STR_LIST)
    arxiv_class: list[str] = ads_field(FieldKind.STR_LIST)
    author: list[str] = ads_field(FieldKind.STR_LIST)
    author_count: int = ads_field(FieldKind.INT)
    author_norm: list[str] = ads_field(FieldKind.STR_LIST)
    bibcode: str = ads_field(FieldKind.STR)
    bibgroup: list[str] = ads_field(FieldKind.STR_LIST)
    bibstem: list[str] = ads_field(FieldKind.STR_LIST)
    citation: list[str] = ads_field(FieldKind.STR_LIST)
    citation_count: int = ads_field(FieldKind.INT)
    cite_read_boost: float = ads_field(FieldKind.FLOAT)
    classic_factor: int = ads_field(FieldKind.INT)
    comment: str = ads_field(FieldKind.STR)
    copyright: str = ads_field(FieldKind.STR)
    data: list[str] = ads_field(FieldKind.STR_LIST)
    database: list[Database] = ads_field(FieldKind.ENUM_LIST, choices=Database)
    date: datetime = ads_field(FieldKind.DATETIME)
    doctype: DocType = ads_field(FieldKind.ENUM, choices=DocType)
    doi: list[str] = ads_field(FieldKind.STR_LIST)
    eid: str = ads_field(FieldKind.STR)
    entdate: str = ads_field(FieldKind.STR)  # YYYY-MM-DD
    entry_date: datetime = ads_field(FieldKind.DATETIME)
    esources: list[str] = ads_field(FieldKind.STR_LIST)
    facility: list[str] = ads_field(FieldKind.STR_LIST)
    first_author: str = ads_field(FieldKind.STR)
    first_author_norm: str = ads_field(FieldKind.STR)
    grant: list[str] = ads_field(FieldKind.STR_LIST)
    grant_agencies: list[str] = ads_field(FieldKind.STR_LIST)
    grant_id: list[str] = ads_field(FieldKind.STR_LIST)
    id: str = ads_field(FieldKind.STR)
    identifier: list[str] = ads_field(FieldKind.STR_LIST)
    indexstamp: datetime = ads_field(FieldKind.DATETIME)
    inst: list[str] = ads_field(FieldKind.STR_LIST)
    isbn: list[str] = ads_field(FieldKind.STR_LIST)
    issn: list[str] = ads_field(FieldKind.STR_LIST)
    issue: str = ads_field(FieldKind.STR)
    keyword: list[str] = ads_field(FieldKind.STR_LIST)
    keyword_norm: list[str] = ads_field(FieldKind.STR_LIST)
    keyword_schema: list[str] = ads_field(FieldKind.STR_LIST)
    lang: str = ads_field(FieldKind.STR)
    links_data: list[str] = ads_field(FieldKind.STR_LIST)
    nedid: list[str] = ads_field(FieldKind.STR_LIST)
    nedtype: list[str] = ads_field(FieldKind.STR_LIST)
    orcid_pub: list[str] = ads_field(FieldKind.STR_LIST)
    orcid_other: list[str] = ads_field(FieldKind.STR_LIST)
    orcid_user: list[str] = ads_field(FieldKind.STR_LIST)
    page: list[str] = ads_field(FieldKind.STR_LIST)
    page_count: str = ads_field(FieldKind.STR)
    page_range: str = ads_field(FieldKind.STR)
    property: list[str] = ads_field(FieldKind.STR_LIST)
    publication: str = ads_field(FieldKind.STR, name="pub")
    pub_raw: str = ads_field(FieldKind.STR)
    pubdate: str = ads_field(FieldKind.STR)  # YYYY-MM-DD
    pubnote: list[str] = ads_field(FieldKind.STR_LIST)
    read_count: int = ads_field(FieldKind.INT)
    reference: list[str] = ads_field(FieldKind.STR_LIST)
    simbid: list[str] = ads_field(FieldKind.STR_LIST)
    title: list[str] = ads_field(FieldKind.STR_LIST)
    vizier: list[str] = ads_field(FieldKind.STR_LIST)
    volume: str = ads_field(FieldKind.STR)
    year: str = ads_field(FieldKind.STR)


RECORD_TYPES: dict[str, type] = {
    "article": Article,
    "authors": AuthorInfo,
    "citations": CitationInfo,
    "document": Document,
}


@dataclass
class RateLimit:
    """Rate limit counters reported on a single response."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[int] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional[RateLimit]:
        lowered = {k.lower(): v for k, v in headers.items()}

        def _int(name: str) -> Optional[int]:
            value = lowered.get(name)
            if value is None:
                return None
            try:
                return int(value)
            except ValueError:
                return None

        rl = cls(
            limit=_int("x-ratelimit-limit"),
            remaining=_int("x-ratelimit-remaining"),
            reset=_int("x-ratelimit-reset"),
        )
        if rl.limit is None and rl.remaining is None and rl.reset is None:
            return None
        return rl


@dataclass
class RecordFailure:
    """A document from the response that could not be decoded."""

    index: int
    doc: Any
    error: Exception


@dataclass
class SearchResponse(Generic[T]):
    """One page of search results."""

    num_found: int
    start: int
    records: list[T] = field(default_factory=list)
    failures: list[RecordFailure] = field(default_factory=list)
    rate_limit: Optional[RateLimit] = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

"""Requests and responses for the ADS export endpoint."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Union

from adsabs.decoder import parse_body
from adsabs.errors import DecodeError, InvalidQuery
from adsabs.query import MAX_ROWS, Sort, format_sort


class ExportFormat(Enum):
    BIBTEX = "bibtex"
    BIBTEXABS = "bibtexabs"
    ADS = "ads"
    ENDNOTE = "endnote"
    PROCITE = "procite"
    RIS = "ris"
    REFWORKS = "refworks"
    RSS = "rss"
    MEDLARS = "medlars"
    DCXML = "dcxml"
    REFXML = "refxml"
    REFABSXML = "refabsxml"
    AASTEX = "aastex"
    ICARUS = "icarus"
    MNRAS = "mnras"
    SOPH = "soph"
    VOTABLE = "votable"
    CUSTOM = "custom"


def build_export_request(
    fmt: Union[ExportFormat, str],
    bibcodes: Iterable[str],
    *,
    sort: Iterable[Union[Sort, str]] = (),
    custom_format: Optional[str] = None,
) -> tuple[str, dict]:
    """Return the ``(path, json_body)`` pair for an export request."""
    if isinstance(fmt, str):
        try:
            fmt = ExportFormat(fmt.lower())
        except ValueError:
            raise InvalidQuery(f"unknown export format: {fmt!r}") from None

    codes = [b.strip() for b in bibcodes if b and b.strip()]
    if not codes:
        raise InvalidQuery("at least one bibcode is required")
    if len(codes) > MAX_ROWS:
        raise InvalidQuery(f"{len(codes)} bibcodes exceeds the export maximum of {MAX_ROWS}")
    if fmt is ExportFormat.CUSTOM and not custom_format:
        raise InvalidQuery("the custom export format needs a format string")

    body: dict = {"bibcode": codes}
    sorts = [Sort.parse(s) if isinstance(s, str) else s for s in sort]
    if sorts:
        body["sort"] = format_sort(sorts)
    if custom_format:
        body["format"] = custom_format
    return f"export/{fmt.value}", body


def decode_export(body: Union[str, bytes]) -> str:
    payload = parse_body(body)
    if not isinstance(payload, dict) or not isinstance(payload.get("export"), str):
        raise DecodeError("export response has no 'export' string")
    return payload["export"]

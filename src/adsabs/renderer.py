"""Rich terminal renderer for ADS search results with reference IDs and suggestive prompts."""

from __future__ import annotations

import json

from rich.console import Console
from rich.text import Text

from adsabs.fields import UNSET, to_dict
from adsabs.models import ABS_URL, RateLimit, SearchResponse

console = Console()


def _value(rec, *attrs):
    """First set attribute among ``attrs``, or ``None``."""
    for attr in attrs:
        value = getattr(rec, attr, UNSET)
        if value is not UNSET:
            return value
    return None


def _title(rec) -> str:
    title = _value(rec, "title")
    if isinstance(title, list):
        title = title[0] if title else None
    return title or _value(rec, "bibcode") or "(untitled)"


def _format_authors(authors: list[str]) -> str:
    names = authors[:3]
    if len(authors) > 3:
        names = names + ["et al."]
    return ", ".join(names)


def _meta_parts(rec) -> list[str]:
    parts = []
    authors = _value(rec, "authors", "author")
    if authors:
        parts.append(_format_authors(authors))
    year = _value(rec, "year")
    if year:
        parts.append(str(year))
    venue = _value(rec, "publication")
    if venue:
        parts.append(venue)
    citations = _value(rec, "citation_count")
    if citations is not None:
        parts.append(f"cited by {citations}")
    reads = _value(rec, "read_count")
    if reads is not None:
        parts.append(f"{reads} reads")
    return parts


def _suggestion_lines(rec) -> list[str]:
    bibcode = _value(rec, "bibcode")
    if not bibcode:
        return []
    return [
        f"  > Use `ads export {bibcode}` for a BibTeX entry",
        f'  > Use `ads search "citations(bibcode:{bibcode})"` to see who cites this',
    ]


def render_search_response(response: SearchResponse, *, source: str = "ADS") -> None:
    """Render a page of search results with reference IDs."""
    if not response.records and not response.failures:
        console.print("[yellow]No results found.[/yellow]")
        return

    header = f"Found {response.num_found:,} results"
    if source:
        header += f" from {source}"
    shown_from = response.start + 1
    shown_to = response.start + len(response.records) + len(response.failures)
    header += f" (showing {shown_from}-{shown_to})"
    console.print(header)
    console.print()

    for i, rec in enumerate(response.records, 1):
        title_line = Text()
        title_line.append(f"[r{i}] ", style="bold cyan")
        title_line.append(_title(rec), style="bold")
        console.print(title_line)

        bibcode = _value(rec, "bibcode")
        if bibcode:
            console.print(f"     {ABS_URL.format(bibcode=bibcode)}", style="dim", markup=False)

        meta_parts = _meta_parts(rec)
        if meta_parts:
            console.print(f"     {' | '.join(meta_parts)}", style="dim", markup=False)

        abstract = _value(rec, "abstract")
        if abstract:
            snippet = abstract[:300]
            if len(abstract) > 300:
                snippet += "..."
            console.print(f"     {snippet}", markup=False)

        for line in _suggestion_lines(rec):
            console.print(line, style="dim italic")

        console.print()

    render_failures(response)
    render_rate_limit(response.rate_limit)


def render_failures(response: SearchResponse) -> None:
    if not response.failures:
        return
    console.print(f"[yellow]{len(response.failures)} record(s) could not be decoded:[/yellow]")
    for failure in response.failures:
        console.print(f"  #{failure.index + 1}: {failure.error}", style="yellow", markup=False)
    console.print()


def render_rate_limit(rate_limit: RateLimit | None) -> None:
    if rate_limit is None or rate_limit.remaining is None:
        return
    line = f"API requests remaining: {rate_limit.remaining}"
    if rate_limit.limit is not None:
        line += f" of {rate_limit.limit}"
    console.print(line, style="dim")


def render_json(response: SearchResponse) -> None:
    """Print results as JSON, one object per record, unset fields omitted."""
    data = {
        "numFound": response.num_found,
        "start": response.start,
        "docs": [to_dict(rec) for rec in response.records],
    }
    if response.failures:
        data["failures"] = [
            {"index": f.index, "error": str(f.error)} for f in response.failures
        ]
    console.print_json(json.dumps(data))


def render_export(text: str) -> None:
    console.print(text, markup=False, highlight=False)

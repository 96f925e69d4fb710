"""CLI entry point for the ads tool."""

from __future__ import annotations

import logging
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from adsabs.errors import AdsError
from adsabs.export import ExportFormat
from adsabs.models import RECORD_TYPES

console = Console()


def _client(token: Optional[str]):
    from adsabs.client import AdsClient

    if token:
        return AdsClient(token)
    return AdsClient.from_env()


def _split_fields(values: tuple[str, ...]) -> Optional[tuple[str, ...]]:
    fields = [f.strip() for v in values for f in v.split(",") if f.strip()]
    return tuple(fields) if fields else None


@click.group()
@click.version_option(package_name="adsabs-cli")
@click.option("--verbose", "-v", is_flag=True, help="Log HTTP requests to stderr.")
def cli(verbose: bool):
    """ads - Search the SAO/NASA Astrophysics Data System."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


# ---------------------------------------------------------------------------
# ads env
# ---------------------------------------------------------------------------


@cli.group(invoke_without_command=True)
@click.pass_context
def env(ctx):
    """Show or configure the API token.

    Run without arguments to see current status.
    Use `ads env set KEY value` to save a key to ~/.ads/.env.
    """
    if ctx.invoked_subcommand is not None:
        return

    from adsabs.config import PERSISTENT_ENV, check_env, token_file

    statuses = check_env()
    console.print("ADS Configuration Status:")
    console.print()
    for var, is_set, info in statuses:
        status = "[green]set[/green]" if is_set else "[red]not set[/red]"
        console.print(f"  {var}: {status}")
        console.print(f"    {info['description']}")
        console.print(f"    Used by: {', '.join(info['required_by'])}", style="dim")
        console.print()

    path = token_file()
    if path is not None:
        console.print(f"Token file: {path}", style="dim")
    console.print(f"Config file: {PERSISTENT_ENV}", style="dim")

    token_set = any(is_set for var, is_set, _ in statuses if var != "ADS_BASE_URL")
    if not token_set and path is None:
        console.print(
            "Tip: Run `ads env set ADS_API_TOKEN <token>` to save your token persistently.",
            style="dim",
        )


@env.command("set")
@click.argument("key")
@click.argument("value")
def env_set(key: str, value: str):
    """Save a setting to ~/.ads/.env.

    KEY: one of ADS_API_TOKEN, ADS_DEV_KEY, ADS_BASE_URL
    VALUE: the value to store
    """
    from adsabs.config import VALID_KEYS, save_key

    key = key.upper()
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key: {key}[/red]")
        console.print(f"Valid keys: {', '.join(sorted(VALID_KEYS))}")
        raise SystemExit(1)

    path = save_key(key, value)
    console.print(f"Saved {key} to {path}")


# ---------------------------------------------------------------------------
# ads search
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("query", nargs=-1)
@click.option("--fl", "fields", multiple=True, help="Fields to request (comma-separated or repeated).")
@click.option("--sort", "-s", multiple=True, help="Sort order, e.g. 'citation_count desc' or 'date'.")
@click.option("--rows", "-n", default=10, help="Number of results (max 2000).")
@click.option("--start", default=0, help="Offset of the first result.")
@click.option("--year", default=None, help="Year or range (e.g., '2020', '2018-2022', '2020-').")
@click.option("--author", "-a", multiple=True, help="Author filter, e.g. '^Foreman-Mackey, D'.")
@click.option("--fq", multiple=True, help="Filter query applied after the main query.")
@click.option(
    "--record",
    "-r",
    default="article",
    type=click.Choice(sorted(RECORD_TYPES)),
    help="Result shape to decode (default: article).",
)
@click.option("--strict", is_flag=True, help="Fail on the first record that cannot be decoded.")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.option("--token", "-t", default=None, help="API token (default: loaded from environment).")
def search(
    query: tuple[str, ...],
    fields: tuple[str, ...],
    sort: tuple[str, ...],
    rows: int,
    start: int,
    year: Optional[str],
    author: tuple[str, ...],
    fq: tuple[str, ...],
    record: str,
    strict: bool,
    as_json: bool,
    token: Optional[str],
):
    """Search the ADS literature database.

    QUERY: ADS query syntax, e.g. 'supernova' or 'abs:"dark energy"'
    """
    from adsabs.query import Query, Term, year_filter
    from adsabs.renderer import render_json, render_search_response

    try:
        filters = [Term("author", a) for a in author]
        if year:
            filters.append(year_filter(year))
        q = Query(
            text=" ".join(query),
            filters=tuple(filters),
            sort=sort,
            start=start,
            rows=rows,
            record=RECORD_TYPES[record],
            fields=_split_fields(fields),
            filter_queries=fq,
        )
        with _client(token) as client:
            response = client.search(q, strict=strict)
        if as_json:
            render_json(response)
        else:
            render_search_response(response)
    except AdsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# ads export
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("bibcodes", nargs=-1, required=True)
@click.option(
    "--format",
    "-f",
    "fmt",
    default="bibtex",
    type=click.Choice([f.value for f in ExportFormat]),
    help="Export format (default: bibtex).",
)
@click.option("--custom-format", default=None, help="Format string for --format custom (e.g. '%m %Y').")
@click.option("--sort", "-s", multiple=True, help="Sort order, e.g. 'first_author asc'.")
@click.option("--token", "-t", default=None, help="API token (default: loaded from environment).")
def export(
    bibcodes: tuple[str, ...],
    fmt: str,
    custom_format: Optional[str],
    sort: tuple[str, ...],
    token: Optional[str],
):
    """Export records in a citation format.

    BIBCODES: one or more ADS bibcodes, e.g. 2013PASP..125..306F
    """
    from adsabs.renderer import render_export

    try:
        with _client(token) as client:
            text = client.export(bibcodes, fmt, sort=sort, custom_format=custom_format)
        render_export(text)
    except AdsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1)

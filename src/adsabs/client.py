"""Client for the ADS search and export APIs."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from adsabs import config
from adsabs.decoder import decode_response
from adsabs.errors import TokenError
from adsabs.export import ExportFormat, build_export_request, decode_export
from adsabs.models import RateLimit, SearchResponse
from adsabs.query import Query, Sort, build_url
from adsabs.transport import TIMEOUT, Transport

logger = logging.getLogger(__name__)

USER_AGENT = "adsabs-cli/0.1.0"


class AdsClient:
    """An authenticated handle on the ADS API.

    Each call is a single synchronous request. Nothing is cached or retried;
    a rate-limited request raises ``TransportError`` with ``retry_after``
    set and it is up to the caller to try again.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        user_agent: str = USER_AGENT,
        timeout: float = TIMEOUT,
        transport: Optional[Transport] = None,
    ):
        if not token or not token.strip():
            raise TokenError("an ADS API token is required")
        self._token = token.strip()
        self.base_url = (base_url or config.get_base_url()).rstrip("/")
        self.user_agent = user_agent
        self.transport = transport if transport is not None else Transport(timeout=timeout)

    @classmethod
    def from_env(cls, **kwargs) -> AdsClient:
        """Build a client from the token found by ``config.get_token``."""
        return cls(config.get_token(), **kwargs)

    def __repr__(self) -> str:
        return f"AdsClient(base_url={self.base_url!r})"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "User-Agent": self.user_agent,
        }

    def search(self, query: Union[Query, str], *, strict: bool = False) -> SearchResponse:
        """Run one search and decode the returned page."""
        if isinstance(query, str):
            query = Query(text=query)
        schema = query.schema()
        url = build_url(self.base_url, query)
        logger.debug("search %s into %s", query.q(), query.record.__name__)

        raw = self.transport.execute("GET", url, self._headers())
        result = decode_response(raw.text, schema, rows=query.rows, strict=strict)
        result.rate_limit = RateLimit.from_headers(raw.headers)
        return result

    def export(
        self,
        bibcodes: Iterable[str],
        fmt: Union[ExportFormat, str] = ExportFormat.BIBTEX,
        *,
        sort: Iterable[Union[Sort, str]] = (),
        custom_format: Optional[str] = None,
    ) -> str:
        """Export records in a citation format such as BibTeX."""
        path, body = build_export_request(fmt, bibcodes, sort=sort, custom_format=custom_format)
        raw = self.transport.execute("POST", f"{self.base_url}/{path}", self._headers(), body)
        return decode_export(raw.text)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> AdsClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

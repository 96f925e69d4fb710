"""HTTP transport for the ADS API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from adsabs.errors import TransportError

logger = logging.getLogger(__name__)

TIMEOUT = float(os.getenv("ADS_TIMEOUT", "30"))


@dataclass
class RawResponse:
    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


def _redact(headers: dict[str, str]) -> dict[str, str]:
    return {k: ("<redacted>" if k.lower() == "authorization" else v) for k, v in headers.items()}


class Transport:
    """Executes one request per call; never retries."""

    def __init__(self, *, timeout: float = TIMEOUT, client: Optional[httpx.Client] = None):
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def execute(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Any = None,
    ) -> RawResponse:
        logger.debug("%s %s headers=%s", method, url, _redact(headers))
        try:
            resp = self._client.request(method, url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}", url=url) from e

        raw = RawResponse(
            status_code=resp.status_code,
            text=resp.text,
            headers=dict(resp.headers.items()),
        )
        logger.debug("%s %s -> %d (%d bytes)", method, url, resp.status_code, len(resp.content))

        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            raise TransportError(
                f"rate limited by ADS (retry after {retry_after or 'unknown'})",
                url=url,
                status_code=429,
                retry_after=retry_after,
                body=raw.text,
            )
        if not resp.is_success:
            raise TransportError(
                f"ADS returned HTTP {resp.status_code}: {raw.text[:200]}",
                url=url,
                status_code=resp.status_code,
                body=raw.text,
            )
        return raw

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

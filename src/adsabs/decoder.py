"""Decode search API response bodies into typed records."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Union

from adsabs.errors import DecodeError
from adsabs.fields import Schema
from adsabs.models import RecordFailure, SearchResponse

logger = logging.getLogger(__name__)


def parse_body(body: Union[str, bytes]) -> Any:
    try:
        return json.loads(body)
    except ValueError as e:
        # includes the int digit limit on very long numbers
        raise DecodeError(f"response is not valid JSON: {e}") from e


def _count(envelope: dict, key: str) -> int:
    value = envelope.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise DecodeError(f"response.{key} must be a non-negative integer, got {value!r}")
    return value


def decode_response(
    body: Union[str, bytes],
    schema: Schema,
    *,
    rows: Optional[int] = None,
    strict: bool = False,
) -> SearchResponse:
    """Parse a search response body.

    By default a document that fails to decode is reported in
    ``SearchResponse.failures`` and the rest of the page is still returned.
    With ``strict=True`` the first failure is raised instead. Records keep
    the order the API returned them in.
    """
    payload = parse_body(body)
    if not isinstance(payload, dict):
        raise DecodeError("response body must be a JSON object")

    envelope = payload.get("response")
    if envelope is None:
        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("msg") or error
        if error:
            raise DecodeError(f"ADS error: {error}")
        raise DecodeError("response body has no 'response' object")
    if not isinstance(envelope, dict):
        raise DecodeError("'response' must be a JSON object")

    num_found = _count(envelope, "numFound")
    start = _count(envelope, "start")
    docs = envelope.get("docs")
    if not isinstance(docs, list):
        raise DecodeError("response.docs must be a list")
    if len(docs) > num_found:
        raise DecodeError(f"{len(docs)} docs returned but numFound is {num_found}")
    if rows is not None and len(docs) > rows:
        raise DecodeError(f"{len(docs)} docs returned but only {rows} rows requested")

    result = SearchResponse(num_found=num_found, start=start)
    for index, doc in enumerate(docs):
        try:
            result.records.append(schema.decode(doc))
        except DecodeError as e:
            if strict:
                raise
            result.failures.append(RecordFailure(index=index, doc=doc, error=e))

    logger.debug(
        "decoded %d of %d docs (numFound=%d, %d failed)",
        len(result.records), len(docs), num_found, len(result.failures),
    )
    return result

"""Exceptions raised by the ADS client."""

from __future__ import annotations

from typing import Optional


class AdsError(Exception):
    """Base class for every error raised by this package."""


class TokenError(AdsError):
    """No API token could be found."""


class InvalidQuery(AdsError, ValueError):
    """The query cannot be sent as built."""


class TransportError(AdsError):
    """The HTTP request failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: Optional[int] = None,
        retry_after: Optional[str] = None,
        body: str = "",
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.retry_after = retry_after
        self.body = body

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429


class DecodeError(AdsError):
    """The response body does not match the expected shape."""


class MissingRequiredField(DecodeError):
    def __init__(self, field: str):
        super().__init__(f"missing required field '{field}'")
        self.field = field


class TypeMismatch(DecodeError):
    def __init__(self, field: str, expected: str, value):
        super().__init__(
            f"field '{field}' expected {expected}, got {type(value).__name__}: {value!r}"
        )
        self.field = field
        self.expected = expected
        self.value = value

"""
pixiv_client/utils/errors.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *typed error taxonomy* shared by every layer of
the Pixiv client (transports, endpoint dispatcher, settings).

Every error raised on purpose by this package derives from
`PixivClientError`, so callers can catch the whole family with one
`except` clause, or a single member when they care about the cause.

ERROR FAMILY
------------
- InvalidAddress      -> bypass IP text is not an IP literal (construction only)
- NetworkError        -> DNS / TLS / connect / read failure (cause is chained)
- ApiError            -> HTTP round trip completed with a non-2xx status
- SerializationError  -> body could not be decoded into the expected JSON shape
- ConfigurationError  -> invalid settings, missing secret, bad endpoint config
- InvalidParameters   -> missing required / unknown endpoint parameters

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Perform I/O or logging
- Decide when an error is raised (transports and dispatcher do that)
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from pixiv_client.network.status_classifier import ApiErrorCode

ERROR_BODY_PLACEHOLDER = "Failed to get error information"


class PixivClientError(Exception):
    """Base class for all errors raised by pixiv_client."""


class ConfigurationError(PixivClientError, RuntimeError):
    """Settings or endpoint configuration is missing or invalid."""


class InvalidAddress(PixivClientError, ValueError):
    """The text supplied as a bypass IP does not parse as an IP literal."""

    def __init__(self, address: Any):
        self.address = address
        super().__init__(f"Invalid IP address: {address!r}")


class NetworkError(PixivClientError):
    """
    Transport-level failure (DNS, TLS handshake, connection reset, timeout).

    The lower-level exception is always chained as `__cause__`.
    """

    def __init__(self, message: str, *, method: Optional[str] = None, url: Optional[str] = None):
        self.method = method
        self.url = url
        super().__init__(message)


class ApiError(PixivClientError):
    """
    The HTTP call completed but returned a non-success status.

    `body` is the response text, or ERROR_BODY_PLACEHOLDER when the
    error body itself could not be read.
    """

    def __init__(
        self,
        status_code: int,
        body: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status_code = int(status_code)
        self.body = body
        self.headers = httpx.Headers(headers or {})
        self.method = method
        self.url = url
        super().__init__(f"API request failed: {self.status_code} - {body}")

    @property
    def code(self) -> ApiErrorCode:
        return ApiErrorCode.from_code(self.status_code)


class SerializationError(PixivClientError):
    """Response body could not be decoded as the JSON shape an endpoint expects."""

    def __init__(self, message: str, *, endpoint: Optional[str] = None, body_snippet: str = ""):
        self.endpoint = endpoint
        self.body_snippet = body_snippet
        super().__init__(message)


class InvalidParameters(PixivClientError, ValueError):
    """Endpoint call is missing required parameters or passes unknown ones."""

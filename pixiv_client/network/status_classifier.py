"""
pixiv_client/network/status_classifier.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single canonical rule* for deciding whether an
HTTP status returned by the Pixiv API counts as success, and for mapping
failing status / error codes onto a small, stable enum.

It is responsible for:
- The success window used by both transports (2xx only)
- Translating raw codes ("404", 429, "103", ...) into `ApiErrorCode`
- Providing the human-readable label attached to each code

PUBLIC CONTRACT RULE
--------------------
- 200 <= status <= 299 -> success, response returned unmodified
- anything else        -> failure, the transport raises ApiError

Redirects (3xx) are NOT followed by the transports and therefore count
as failures here.

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Perform HTTP calls
- Raise, log, or handle exceptions

It performs **pure, deterministic mapping only**.
"""

from __future__ import annotations

from enum import Enum
from typing import Union


def is_success_status(status_code: int) -> bool:
    return 200 <= int(status_code) <= 299


class ApiErrorCode(Enum):
    """Known Pixiv API error codes."""

    AUTH_ERROR = "103"
    BAD_REQUEST = "400"
    FORBIDDEN = "403"
    NOT_FOUND = "404"
    TOO_MANY_REQUESTS = "429"
    SERVER_ERROR = "500"
    SERVICE_UNAVAILABLE = "503"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: Union[int, str]) -> "ApiErrorCode":
        text = str(code).strip()
        for member in cls:
            if member.value == text:
                return member
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ApiErrorCode.AUTH_ERROR: "Authentication error (103)",
    ApiErrorCode.BAD_REQUEST: "Bad request (400)",
    ApiErrorCode.FORBIDDEN: "Forbidden (403)",
    ApiErrorCode.NOT_FOUND: "Not found (404)",
    ApiErrorCode.TOO_MANY_REQUESTS: "Too many requests (429)",
    ApiErrorCode.SERVER_ERROR: "Server error (500)",
    ApiErrorCode.SERVICE_UNAVAILABLE: "Service unavailable (503)",
    ApiErrorCode.UNKNOWN: "Unknown error code",
}

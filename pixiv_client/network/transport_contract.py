"""
pixiv_client/network/transport_contract.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *shared transport contract* both HTTP transports
satisfy, and the plumbing they have in common:

- `Transport`       -> structural Protocol endpoint code is written against
- `TransportBase`   -> shared header assembly, token storage, status check
- `AuthTokens`      -> immutable (access_token, refresh_token) value
- `ApiResponse`     -> fully-read raw response handed to the endpoint layer

REQUEST PIPELINE (both transports)
----------------------------------
    send(method, url, params, body, headers)
      -> headers: defaults (User-Agent, Accept-Language)
                  + caller headers
                  + Authorization: Bearer <token>   (when set)
                  + subclass overrides              (bypass: Host)
      -> subclass _dispatch()  (one HTTP round trip, body fully read)
      -> 2xx      : ApiResponse returned unmodified
         non-2xx  : ApiError(status_code, body_text)

CONCURRENCY
-----------
The request path reads a single `AuthTokens` reference and never locks.
Setters build a new `AuthTokens` under a writer-only lock and swap it in,
so a reader sees either the old pair or the new pair, never a mix.

WHAT THIS FILE IS NOT FOR
-------------------------
- Connection management (each transport owns its HTTP library client)
- JSON decoding of payloads (endpoint layer)
- Retries (none, by contract)
"""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import httpx
import structlog

from pixiv_client.network.security_headers import SecurityHeaderGenerator
from pixiv_client.network.status_classifier import is_success_status
from pixiv_client.utils.errors import ERROR_BODY_PLACEHOLDER, ApiError
from pixiv_client.utils.settings import Settings

logger = structlog.get_logger(__name__)

Params = Optional[Mapping[str, Any]]
Headers = Optional[Mapping[str, str]]


@dataclass(frozen=True)
class AuthTokens:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""
    url: str = ""

    def __post_init__(self) -> None:
        # One case-insensitive header type, whichever HTTP library produced the response.
        if not isinstance(self.headers, httpx.Headers):
            object.__setattr__(self, "headers", httpx.Headers(self.headers or {}))

    @property
    def is_success(self) -> bool:
        return is_success_status(self.status_code)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)


@runtime_checkable
class Transport(Protocol):
    """Operations endpoint code may rely on, regardless of transport."""

    @property
    def access_token(self) -> Optional[str]: ...

    @property
    def refresh_token(self) -> Optional[str]: ...

    @property
    def base_url(self) -> str: ...

    def set_access_token(self, token: Optional[str]) -> None: ...

    def set_refresh_token(self, token: Optional[str]) -> None: ...

    def set_base_url(self, url: str) -> None: ...

    def send(
        self,
        method: str,
        url: str,
        params: Params = None,
        body: Any = None,
        headers: Headers = None,
    ) -> ApiResponse: ...

    def get(self, url: str, params: Params = None, headers: Headers = None) -> ApiResponse: ...

    def post(self, url: str, body: Any = None, headers: Headers = None) -> ApiResponse: ...

    def generate_security_headers(self) -> Dict[str, str]: ...

    def close(self) -> None: ...


class TransportBase(ABC):
    """
    Shared implementation of the Transport contract.

    Subclasses implement `_dispatch()` (one HTTP round trip returning an
    ApiResponse, body already read) and may extend `_build_headers()`.
    """

    transport_name = "base"

    def __init__(self, settings: Settings, base_url: str):
        self.settings = settings
        self._tokens = AuthTokens()
        self._token_lock = threading.Lock()
        self._base_url = base_url.rstrip("/")
        self._accept_language: Optional[str] = settings.accept_language
        self._security = SecurityHeaderGenerator(settings.client_hash_secret)

    # ------------------------------------------------------------------ #
    # Tokens / identity
    # ------------------------------------------------------------------ #
    @property
    def access_token(self) -> Optional[str]:
        return self._tokens.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._tokens.refresh_token

    @property
    def tokens(self) -> AuthTokens:
        return self._tokens

    def set_access_token(self, token: Optional[str]) -> None:
        with self._token_lock:
            self._tokens = replace(self._tokens, access_token=token)
        logger.debug("access_token_updated", transport=self.transport_name, has_token=bool(token))

    def set_refresh_token(self, token: Optional[str]) -> None:
        with self._token_lock:
            self._tokens = replace(self._tokens, refresh_token=token)
        logger.debug("refresh_token_updated", transport=self.transport_name, has_token=bool(token))

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_base_url(self, url: str) -> None:
        self._base_url = url.rstrip("/")

    @property
    def accept_language(self) -> Optional[str]:
        return self._accept_language

    def set_accept_language(self, language: Optional[str]) -> None:
        self._accept_language = language or None

    def generate_security_headers(self) -> Dict[str, str]:
        return self._security.headers()

    # ------------------------------------------------------------------ #
    # Request path
    # ------------------------------------------------------------------ #
    def send(
        self,
        method: str,
        url: str,
        params: Params = None,
        body: Any = None,
        headers: Headers = None,
    ) -> ApiResponse:
        """
        Issue one request and return the fully-read response.

        Raises:
            NetworkError: DNS / TLS / connection / read failure.
            ApiError: the server answered with a non-2xx status.
        """
        method = method.upper()
        final_headers = self._build_headers(headers)

        logger.debug(
            "api_request_sending",
            transport=self.transport_name,
            method=method,
            url=url,
            has_params=bool(params),
            has_body=body is not None,
        )

        response = self._dispatch(method, url, params, body, final_headers)

        if not response.is_success:
            logger.warning(
                "api_request_failed",
                transport=self.transport_name,
                method=method,
                url=url,
                status_code=response.status_code,
                response_snippet=response.text[:500],
            )
            raise ApiError(
                response.status_code,
                response.text,
                headers=response.headers,
                method=method,
                url=url,
            )

        logger.debug(
            "api_request_succeeded",
            transport=self.transport_name,
            method=method,
            url=url,
            status_code=response.status_code,
        )
        return response

    def get(self, url: str, params: Params = None, headers: Headers = None) -> ApiResponse:
        return self.send("GET", url, params=params, headers=headers)

    def post(self, url: str, body: Any = None, headers: Headers = None) -> ApiResponse:
        return self.send("POST", url, body=body, headers=headers)

    def close(self) -> None:
        """Release pooled connections. Safe to call more than once."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _build_headers(self, extra: Headers) -> Dict[str, str]:
        headers: Dict[str, str] = {"User-Agent": self.settings.user_agent}
        if self._accept_language:
            headers["Accept-Language"] = self._accept_language
        if extra:
            headers.update(extra)

        token = self._tokens.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _read_body(self, read: Any, *, status_code: int, url: str) -> bytes:
        """
        Read a response body via the zero-arg callable `read`.

        A failing read is fatal on success responses. On error responses the
        placeholder text stands in, so the ApiError still carries the status.
        """
        if is_success_status(status_code):
            return read()
        try:
            return read()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "error_body_unreadable",
                transport=self.transport_name,
                status_code=status_code,
                url=url,
                error=str(exc),
            )
            return ERROR_BODY_PLACEHOLDER.encode("utf-8")

    @abstractmethod
    def _dispatch(
        self,
        method: str,
        url: str,
        params: Params,
        body: Any,
        headers: Dict[str, str],
    ) -> ApiResponse:
        raise NotImplementedError

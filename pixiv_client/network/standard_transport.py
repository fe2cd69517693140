"""
pixiv_client/network/standard_transport.py

WHAT THIS FILE IS FOR
---------------------
This module provides the *ordinary* HTTPS transport for the Pixiv API:
normal DNS resolution, normal certificate validation, bearer auth.

It is a thin layer over `requests`:
- One `requests.Session` per thread (Session is not documented as
  thread-safe, so each thread keeps its own connection pool)
- Timeout passed only when Settings.http_timeout_seconds is set,
  otherwise the requests default applies
- Redirects are not followed; a 3xx surfaces as ApiError

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Retry logic (none, by contract)
- Header assembly or status checks (TransportBase does that)
- Endpoint URLs or JSON decoding (endpoint layer)

RELATIONSHIP TO bypass_transport.py
-----------------------------------
- standard_transport.py:
    * requests, per-thread sessions
    * DNS + SNI + certificate validation as usual
- bypass_transport.py:
    * httpx, one shared client
    * fixed IP, no SNI, no certificate validation, forced Host header

Both satisfy the same Transport contract and are interchangeable.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import requests
import structlog

from pixiv_client.network.transport_contract import ApiResponse, Params, TransportBase
from pixiv_client.utils.errors import NetworkError
from pixiv_client.utils.settings import Settings, get_settings

logger = structlog.get_logger(__name__)


class StandardTransport(TransportBase):
    """
    Standard Pixiv transport over `requests`.

    Built once per session and shared; safe to use from several threads.
    """

    transport_name = "standard"

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        super().__init__(settings, str(settings.api_base_url))
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()
        self._timeout = settings.http_timeout_seconds

        logger.info(
            "standard_transport_created",
            base_url=self.base_url,
            http_timeout_seconds=self._timeout,
        )

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._new_session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _new_session(self) -> requests.Session:
        return requests.Session()

    def _dispatch(
        self,
        method: str,
        url: str,
        params: Params,
        body: Any,
        headers: Dict[str, str],
    ) -> ApiResponse:
        kwargs: Dict[str, Any] = {
            "params": dict(params) if params else None,
            "headers": headers,
            "allow_redirects": False,
            "stream": True,
        }
        if body is not None:
            kwargs["json"] = body
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout

        try:
            resp = self._session().request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.error(
                "api_request_network_error",
                transport=self.transport_name,
                method=method,
                url=url,
                error=str(exc),
            )
            raise NetworkError(f"{method} {url} failed: {exc}", method=method, url=url) from exc

        try:
            content = self._read_body(lambda: resp.content, status_code=resp.status_code, url=url)
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {url} body read failed: {exc}", method=method, url=url) from exc
        finally:
            resp.close()

        return ApiResponse(
            status_code=resp.status_code,
            headers=resp.headers,
            content=content,
            url=resp.url or url,
        )

"""
pixiv_client/network/bypass_transport.py

WHAT THIS FILE IS FOR
---------------------
This module provides the *SNI-bypass* transport for the Pixiv API, for
networks that block DNS lookups or TLS SNI for `app-api.pixiv.net`.

For one caller-supplied IP literal it:
- Pins the connection target to https://<ip>:443, whatever hostname the
  request URL names (a ResolutionOverride installed at construction)
- Connects by IP, so the TLS ClientHello carries no server name
- Disables certificate validation (the served certificate cannot match
  the IP we dialled)
- Sends `Host: app-api.pixiv.net` on every request so the origin routes
  to the right virtual host

This is the ONLY module in the package that turns certificate
validation off. Everything else uses library defaults.

CONSTRUCTION RULE
-----------------
The IP is parsed before anything else happens. If it is not an IPv4 or
IPv6 literal, InvalidAddress is raised and no client, socket or SSL
context is created. The IP cannot change afterwards; build a new
transport to target a different IP.

WHAT THIS FILE IS NOT FOR
-------------------------
- Retries or failover across IPs
- Header assembly and status checks shared with StandardTransport
  (see transport_contract.py)
"""

from __future__ import annotations

import ipaddress
import ssl
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import structlog

from pixiv_client.network.transport_contract import ApiResponse, Headers, Params, TransportBase
from pixiv_client.utils.errors import InvalidAddress, NetworkError
from pixiv_client.utils.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

HTTPS_PORT = 443


def parse_ip_literal(text: Any) -> str:
    """
    Validate `text` as an IPv4 / IPv6 literal and return its canonical form.

    Raises:
        InvalidAddress: for non-strings, empty strings, hostnames, or
            anything else `ipaddress` rejects.
    """
    if not isinstance(text, str):
        raise InvalidAddress(text)
    try:
        return str(ipaddress.ip_address(text))
    except ValueError as exc:
        raise InvalidAddress(text) from exc


@dataclass(frozen=True)
class ResolutionOverride:
    """Connect to `ip:port` for requests addressed to `hostname`."""

    hostname: str
    ip: str
    port: int = HTTPS_PORT

    @property
    def url_host(self) -> str:
        return f"[{self.ip}]" if ":" in self.ip else self.ip


def build_unverified_ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class PinnedResolutionTransport(httpx.BaseTransport):
    """
    httpx transport that rewrites every request's connection target to the
    override's IP and port before handing it to `inner`.

    Headers are left untouched, so the Host header set by the caller
    survives the rewrite.
    """

    def __init__(self, override: ResolutionOverride, inner: Optional[httpx.BaseTransport] = None):
        self.override = override
        self._inner = inner or httpx.HTTPTransport(verify=build_unverified_ssl_context())

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request.url = request.url.copy_with(
            scheme="https",
            host=self.override.url_host,
            port=self.override.port,
        )
        return self._inner.handle_request(request)

    def close(self) -> None:
        self._inner.close()


class BypassTransport(TransportBase):
    """
    Pixiv transport that reaches the API through a fixed IP.

    Example:
        transport = BypassTransport("210.140.131.145")
        transport.set_access_token(token)
        resp = transport.get("https://app-api.pixiv.net/v1/illust/detail",
                             params={"illust_id": "1"})
    """

    transport_name = "bypass"

    def __init__(
        self,
        ip: Any,
        settings: Optional[Settings] = None,
        inner_transport: Optional[httpx.BaseTransport] = None,
    ):
        ip = parse_ip_literal(ip)

        settings = settings or get_settings()
        self.override = ResolutionOverride(
            hostname=settings.api_host,
            ip=ip,
            port=settings.bypass_port,
        )
        super().__init__(settings, f"https://{self.override.url_host}")

        client_kwargs: Dict[str, Any] = {
            "transport": PinnedResolutionTransport(self.override, inner_transport),
            "follow_redirects": False,
            "trust_env": False,
        }
        if settings.http_timeout_seconds is not None:
            client_kwargs["timeout"] = settings.http_timeout_seconds
        self._client = httpx.Client(**client_kwargs)

        logger.info(
            "bypass_transport_created",
            ip=ip,
            port=self.override.port,
            api_host=self.override.hostname,
            base_url=self.base_url,
        )

    @property
    def ip(self) -> str:
        return self.override.ip

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _build_headers(self, extra: Headers) -> Dict[str, str]:
        headers = {
            k: v for k, v in super()._build_headers(extra).items() if k.lower() != "host"
        }
        headers["Host"] = self.override.hostname
        return headers

    def _dispatch(
        self,
        method: str,
        url: str,
        params: Params,
        body: Any,
        headers: Dict[str, str],
    ) -> ApiResponse:
        try:
            request = self._client.build_request(
                method,
                url,
                params=dict(params) if params else None,
                json=body,
                headers=headers,
            )
            requested_url = str(request.url)
            resp = self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "api_request_network_error",
                transport=self.transport_name,
                method=method,
                url=url,
                ip=self.override.ip,
                error=str(exc),
            )
            raise NetworkError(f"{method} {url} via {self.override.ip} failed: {exc}", method=method, url=url) from exc

        try:
            content = self._read_body(resp.read, status_code=resp.status_code, url=url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {url} body read failed: {exc}", method=method, url=url) from exc
        finally:
            resp.close()

        return ApiResponse(
            status_code=resp.status_code,
            headers=resp.headers,
            content=content,
            url=requested_url,
        )

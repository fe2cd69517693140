# tests/test_bypass_transport.py
from __future__ import annotations

import json
import ssl
from dataclasses import dataclass
from typing import Any, List, Optional

import httpx
import pytest

import pixiv_client.network.bypass_transport as bt_mod
from pixiv_client.network.bypass_transport import (
    BypassTransport,
    PinnedResolutionTransport,
    ResolutionOverride,
    build_unverified_ssl_context,
    parse_ip_literal,
)
from pixiv_client.network.status_classifier import ApiErrorCode
from pixiv_client.utils.errors import ERROR_BODY_PLACEHOLDER, ApiError, InvalidAddress, NetworkError


@dataclass
class _FakeSettings:
    api_host: str = "app-api.pixiv.net"
    api_base_url: str = "https://app-api.pixiv.net"
    bypass_port: int = 443
    http_timeout_seconds: Optional[float] = None
    user_agent: str = "PixivTest/1.0"
    accept_language: Optional[str] = None
    client_hash_secret: Optional[str] = "test-secret"


class _FailingStream(httpx.SyncByteStream):
    """Response body that dies mid-read, like a reset connection."""

    def __iter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


class _Recorder:
    """MockTransport handler that records every request it receives."""

    def __init__(self, status_code: int = 200, payload: Any = None, stream: Any = None, headers: Any = None):
        self.status_code = status_code
        self.payload = {"ok": True} if payload is None else payload
        self.stream = stream
        self.headers = headers or {}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.stream is not None:
            return httpx.Response(self.status_code, stream=self.stream, headers=self.headers)
        return httpx.Response(self.status_code, json=self.payload, headers=self.headers)


def _make(ip: str = "210.140.131.145", recorder: Optional[_Recorder] = None, **settings_kw: Any):
    recorder = recorder or _Recorder()
    transport = BypassTransport(
        ip,
        settings=_FakeSettings(**settings_kw),  # type: ignore[arg-type]
        inner_transport=httpx.MockTransport(recorder),
    )
    return transport, recorder


# ---------------------------------------------------------------
# Construction
# ---------------------------------------------------------------
def test_pins_destination_and_host_for_canonical_ip() -> None:
    transport, recorder = _make("210.140.131.145")

    resp = transport.get("https://app-api.pixiv.net/v1/illust/detail", params={"illust_id": "1"})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    (req,) = recorder.requests
    assert req.url.scheme == "https"
    assert req.url.host == "210.140.131.145"
    assert (req.url.port or 443) == 443
    assert req.url.path == "/v1/illust/detail"
    assert req.url.params["illust_id"] == "1"
    assert req.headers["host"] == "app-api.pixiv.net"
    assert transport.base_url == "https://210.140.131.145"


@pytest.mark.parametrize(
    "bad_ip",
    ["not_an_ip", "", "app-api.pixiv.net", "256.1.1.1", "1.2.3", " 1.2.3.4", None, 12345],
)
def test_invalid_ip_raises_before_any_client_is_built(monkeypatch: pytest.MonkeyPatch, bad_ip: Any) -> None:
    def _boom(*args: Any, **kwargs: Any) -> Any:
        raise AssertionError("nothing may be constructed for an invalid IP")

    monkeypatch.setattr(bt_mod.httpx, "Client", _boom)
    monkeypatch.setattr(bt_mod, "build_unverified_ssl_context", _boom)
    monkeypatch.setattr(bt_mod, "get_settings", _boom)

    with pytest.raises(InvalidAddress) as ei:
        BypassTransport(bad_ip)

    assert ei.value.address == bad_ip
    assert isinstance(ei.value, ValueError)


def test_parse_ip_literal_accepts_ipv4_and_ipv6() -> None:
    assert parse_ip_literal("210.140.131.145") == "210.140.131.145"
    assert parse_ip_literal("2001:DB8::1") == "2001:db8::1"


def test_ipv6_base_url_and_destination_are_bracketed() -> None:
    transport, recorder = _make("2001:db8::1")

    transport.get("https://app-api.pixiv.net/v1/user/detail")

    assert transport.base_url == "https://[2001:db8::1]"
    (req,) = recorder.requests
    assert req.url.host == "2001:db8::1"
    assert req.headers["host"] == "app-api.pixiv.net"


def test_resolution_override_targets_api_host_on_443() -> None:
    transport, _ = _make("210.140.131.145")

    assert transport.override == ResolutionOverride(hostname="app-api.pixiv.net", ip="210.140.131.145", port=443)
    assert transport.ip == "210.140.131.145"
    assert ResolutionOverride("h", "::1").url_host == "[::1]"


def test_unverified_ssl_context_disables_hostname_and_cert_checks() -> None:
    ctx = build_unverified_ssl_context()

    assert ctx.check_hostname is False
    assert ctx.verify_mode == ssl.CERT_NONE


def test_default_inner_transport_is_real_https_transport() -> None:
    pinned = PinnedResolutionTransport(ResolutionOverride("app-api.pixiv.net", "210.140.131.145"))
    try:
        assert isinstance(pinned._inner, httpx.HTTPTransport)
    finally:
        pinned.close()


def test_timeout_only_applied_when_configured() -> None:
    configured, _ = _make(http_timeout_seconds=7.5)
    default, _ = _make()

    assert configured._client.timeout == httpx.Timeout(7.5)
    assert default._client.timeout == httpx.Client().timeout


# ---------------------------------------------------------------
# Request pipeline
# ---------------------------------------------------------------
def test_any_hostname_is_pinned_to_the_ip() -> None:
    transport, recorder = _make("210.140.131.145")

    transport.get("http://example.com/v1/whatever")

    (req,) = recorder.requests
    assert req.url.scheme == "https"
    assert req.url.host == "210.140.131.145"
    assert req.headers["host"] == "app-api.pixiv.net"


def test_caller_host_header_is_replaced() -> None:
    transport, recorder = _make()

    transport.get("https://app-api.pixiv.net/v1/illust/detail", headers={"host": "evil.example"})

    (req,) = recorder.requests
    assert req.headers.get_list("host") == ["app-api.pixiv.net"]


def test_bearer_token_added_only_when_set() -> None:
    transport, recorder = _make()

    transport.get("https://app-api.pixiv.net/a")
    transport.set_access_token("tok-123")
    transport.get("https://app-api.pixiv.net/b")

    first, second = recorder.requests
    assert "authorization" not in first.headers
    assert second.headers["authorization"] == "Bearer tok-123"
    assert transport.access_token == "tok-123"


def test_post_body_is_json_encoded() -> None:
    transport, recorder = _make()

    transport.post("https://app-api.pixiv.net/v2/illust/bookmark/add", body={"illust_id": "1", "restrict": "public"})

    (req,) = recorder.requests
    assert req.method == "POST"
    assert req.headers["content-type"] == "application/json"
    assert json.loads(req.content) == {"illust_id": "1", "restrict": "public"}


def test_default_headers_and_accept_language() -> None:
    transport, recorder = _make(accept_language="ja")

    transport.get("https://app-api.pixiv.net/a")
    transport.set_accept_language("en-US")
    transport.get("https://app-api.pixiv.net/b")

    first, second = recorder.requests
    assert first.headers["user-agent"] == "PixivTest/1.0"
    assert first.headers["accept-language"] == "ja"
    assert second.headers["accept-language"] == "en-US"


# ---------------------------------------------------------------
# Errors
# ---------------------------------------------------------------
def test_non_2xx_raises_api_error_with_body() -> None:
    recorder = _Recorder(status_code=404, payload={"error": {"message": "Page not found"}})
    transport, _ = _make(recorder=recorder)

    with pytest.raises(ApiError) as ei:
        transport.get("https://app-api.pixiv.net/v1/illust/detail")

    err = ei.value
    assert err.status_code == 404
    assert "Page not found" in err.body
    assert err.code is ApiErrorCode.NOT_FOUND
    assert err.method == "GET"


def test_redirect_is_not_followed() -> None:
    recorder = _Recorder(status_code=302, headers={"location": "https://elsewhere.example/"})
    transport, _ = _make(recorder=recorder)

    with pytest.raises(ApiError) as ei:
        transport.get("https://app-api.pixiv.net/v1/illust/detail")

    assert ei.value.status_code == 302
    assert len(recorder.requests) == 1


def test_unreadable_error_body_uses_placeholder() -> None:
    recorder = _Recorder(status_code=502, stream=_FailingStream())
    transport, _ = _make(recorder=recorder)

    with pytest.raises(ApiError) as ei:
        transport.get("https://app-api.pixiv.net/v1/illust/detail")

    assert ei.value.status_code == 502
    assert ei.value.body == ERROR_BODY_PLACEHOLDER


def test_unreadable_success_body_is_network_error() -> None:
    recorder = _Recorder(status_code=200, stream=_FailingStream())
    transport, _ = _make(recorder=recorder)

    with pytest.raises(NetworkError) as ei:
        transport.get("https://app-api.pixiv.net/v1/illust/detail")

    assert isinstance(ei.value.__cause__, httpx.ReadError)


def test_connect_failure_is_network_error_with_cause() -> None:
    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = BypassTransport(
        "210.140.131.145",
        settings=_FakeSettings(),  # type: ignore[arg-type]
        inner_transport=httpx.MockTransport(_refuse),
    )

    with pytest.raises(NetworkError) as ei:
        transport.get("https://app-api.pixiv.net/v1/illust/detail")

    assert isinstance(ei.value.__cause__, httpx.ConnectError)
    assert ei.value.method == "GET"


def test_close_is_idempotent_and_context_manager_closes() -> None:
    transport, _ = _make()
    with transport as t:
        assert t is transport
    transport.close()

    assert transport._client.is_closed

"""
pixiv_client/endpoints/endpoint_dispatcher.py

WHAT THIS FILE IS FOR
---------------------
This module provides the *endpoint layer* of the Pixiv client: one generic
`call(name, **params)` that replaces a hand-written method per API
endpoint.

It exists to:
- Read endpoint descriptors from parameters/config.yaml
- Validate and encode call arguments against each descriptor
- Build the URL from the canonical API base URL + descriptor path
- Issue exactly one request through a Transport
- Decode the JSON body once and check its top-level shape

This class represents the *data access boundary* between callers and
the transports.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Connection handling, TLS, Host pinning (transports)
- Auth flows (tokens are set on the transport by the caller)
- Retries (none)
- Typed payload models (callers receive the decoded dict)

CONFIGURATION
-------------
- Endpoint descriptors are defined in: parameters/config.yaml
- The base URL comes from Settings.api_base_url, not from the
  transport. A BypassTransport's base_url is its IP identity
  (https://<ip>), while requests are addressed to the canonical host
  and pinned below the HTTP client.

DESIGN INTENT
-------------
Adding an endpoint means adding a descriptor to config.yaml. Code
changes are only needed for a new parameter style or response rule.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from pixiv_client.endpoints.param_encoder import encode_param
from pixiv_client.network.transport_contract import ApiResponse, Transport
from pixiv_client.utils.errors import ConfigurationError, InvalidParameters, SerializationError
from pixiv_client.utils.settings import Settings, get_settings
from pixiv_schemas.endpoint_schema import EndpointDescriptor

logger = structlog.get_logger(__name__)

CONFIG_PATH = Path(__file__).resolve().parents[2] / "parameters" / "config.yaml"


@lru_cache(maxsize=1)
def load_endpoint_config() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        logger.warning("endpoint_config_missing", path=str(CONFIG_PATH))
        return {}

    try:
        with CONFIG_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning("endpoint_config_not_dict", path=str(CONFIG_PATH))
            return {}
        logger.info("endpoint_config_loaded", path=str(CONFIG_PATH))
        return data
    except (OSError, yaml.YAMLError) as exc:
        logger.error("endpoint_config_load_error", path=str(CONFIG_PATH), error=str(exc))
        return {}


class EndpointDispatcher:
    """
    Generic Pixiv endpoint caller.

    Example:
        dispatcher = EndpointDispatcher(build_transport())
        detail = dispatcher.call("illust_detail", illust_id=59580629)
        detail["illust"]["title"]
    """

    def __init__(
        self,
        transport: Transport,
        base_url: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.transport = transport
        if base_url is None:
            base_url = str((settings or get_settings()).api_base_url)
        self._base_url = base_url.rstrip("/")
        self._config = load_endpoint_config()
        self._descriptors: Dict[str, EndpointDescriptor] = {}

    @property
    def base_url(self) -> str:
        return self._base_url

    def endpoint_names(self) -> list[str]:
        return sorted((self._config.get("endpoints") or {}).keys())

    def describe(self, name: str) -> EndpointDescriptor:
        """Return the validated descriptor for `name` (cached per dispatcher)."""
        cached = self._descriptors.get(name)
        if cached is not None:
            return cached

        try:
            raw = self._config["endpoints"][name]
            if not isinstance(raw, dict):
                raise TypeError("Endpoint descriptor must be a mapping")
            descriptor = EndpointDescriptor.model_validate({"name": name, **raw})
        except (KeyError, TypeError, ValidationError) as exc:
            logger.error("endpoint_descriptor_missing_or_invalid", endpoint=name, error=str(exc))
            raise ConfigurationError(f"Missing or invalid endpoint descriptor: {name}") from exc

        self._descriptors[name] = descriptor
        return descriptor

    def build_params(self, descriptor: EndpointDescriptor, params: Dict[str, Any]) -> Dict[str, str]:
        """
        Apply defaults, check required/unknown names, and encode.

        A caller-supplied None counts as "not supplied" and falls back to
        the descriptor default.
        """
        unknown = sorted(set(params) - {p.name for p in descriptor.params})
        if unknown:
            raise InvalidParameters(f"Unknown parameters for {descriptor.name}: {', '.join(unknown)}")

        encoded: Dict[str, str] = {}
        missing: list[str] = []
        for spec in descriptor.params:
            value = params.get(spec.name)
            if value is None:
                value = spec.default
            if value is None:
                if spec.required:
                    missing.append(spec.name)
                continue
            encoded.update(encode_param(spec, value))

        if missing:
            raise InvalidParameters(f"Missing required parameters for {descriptor.name}: {', '.join(missing)}")
        return encoded

    def call(self, name: str, **params: Any) -> Dict[str, Any]:
        """
        Call endpoint `name` and return its decoded JSON object.

        Raises:
            ConfigurationError: unknown or invalid descriptor.
            InvalidParameters: missing required / unknown parameters.
            NetworkError, ApiError: from the transport.
            SerializationError: body is not a JSON object with the
                expected top-level keys.
        """
        descriptor = self.describe(name)
        encoded = self.build_params(descriptor, params)
        url = self._base_url + descriptor.path

        headers: Dict[str, str] = {}
        if descriptor.security_headers:
            headers.update(self.transport.generate_security_headers())

        logger.info("endpoint_call", endpoint=name, method=descriptor.method, url=url)

        if descriptor.method == "GET":
            response = self.transport.send("GET", url, params=encoded, headers=headers or None)
        else:
            response = self.transport.send(descriptor.method, url, body=encoded, headers=headers or None)

        return self._decode(descriptor, response)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _decode(self, descriptor: EndpointDescriptor, response: ApiResponse) -> Dict[str, Any]:
        snippet = response.text[:500]
        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("endpoint_response_not_json", endpoint=descriptor.name, response_snippet=snippet)
            raise SerializationError(
                f"{descriptor.name}: response is not valid JSON: {exc}",
                endpoint=descriptor.name,
                body_snippet=snippet,
            ) from exc

        if not isinstance(data, dict):
            raise SerializationError(
                f"{descriptor.name}: expected a JSON object, got {type(data).__name__}",
                endpoint=descriptor.name,
                body_snippet=snippet,
            )

        missing = [key for key in descriptor.expects if key not in data]
        if missing:
            logger.warning("endpoint_response_shape_mismatch", endpoint=descriptor.name, missing=missing)
            raise SerializationError(
                f"{descriptor.name}: response missing keys: {', '.join(missing)}",
                endpoint=descriptor.name,
                body_snippet=snippet,
            )

        logger.debug("endpoint_call_succeeded", endpoint=descriptor.name)
        return data

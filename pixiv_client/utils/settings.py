"""
pixiv_client/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
Runtime configuration for the Pixiv client: API host, base URL, timeout,
user agent, the security-header secret and the optional bypass IP.

parameters/parameters.yaml supplies the defaults; any PIXIV_CLIENT_*
environment variable replaces the matching field. get_settings() caches
the validated result for the life of the process.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- HTTP calls
- Building transports (see pixiv_client/network/transport_factory.py)
- Endpoint definitions (see parameters/config.yaml)

SECRETS
-------
`client_hash_secret` is never logged. Only its presence is reported.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import AnyHttpUrl, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from pixiv_client.utils.errors import ConfigurationError

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"


class Settings(BaseSettings):
    """
    Runtime settings for the Pixiv client. Env fields use the PIXIV_CLIENT_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="PIXIV_CLIENT_",
        extra="ignore",
    )

    # Library metadata
    client_name: str = "pixiv_sni_client"
    environment: str = "local"
    log_level: str = "INFO"
    log_json: bool = False

    # Canonical API identity
    # api_host is the virtual host the origin routes on; the bypass
    # transport always sends it as the Host header.
    api_host: str = "app-api.pixiv.net"
    api_base_url: AnyHttpUrl = "https://app-api.pixiv.net"  # type: ignore[assignment]

    # SNI bypass
    bypass_ip: Optional[str] = Field(
        default=None,
        description="If set, build_transport() returns a BypassTransport pinned to this IP.",
    )
    bypass_port: int = Field(default=443, ge=1, le=65535)

    # Security headers (x-client-time / x-client-hash)
    client_hash_secret: Optional[str] = Field(
        default=None,
        description="Shared secret appended to x-client-time before hashing.",
    )

    # Default request headers
    user_agent: str = Field(default="PixivAndroidApp/5.0.234 (Android 11; Pixel 5)", min_length=1)
    accept_language: Optional[str] = None

    # None -> HTTP library default
    http_timeout_seconds: Optional[float] = Field(default=None, gt=0)


@lru_cache(maxsize=1)
def _load_yaml_parameters() -> Dict[str, Any]:
    """Read parameters/parameters.yaml once; a missing or malformed file yields {}."""
    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", expected=str(PARAMETERS_PATH))
        return {}

    try:
        with PARAMETERS_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(
                "parameters_yaml_not_dict",
                path=str(PARAMETERS_PATH),
                type=type(data).__name__,
            )
            return {}
        logger.info("parameters_yaml_loaded", path=str(PARAMETERS_PATH))
        return data
    except (OSError, yaml.YAMLError) as exc:
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        return {}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct and return the final validated Settings object.

    Cached for the process. Tests pass their own Settings to the
    transports instead.
    """
    # 1) YAML defaults
    yaml_data = _load_yaml_parameters()

    # 2) env overrides (partial)
    try:
        env_settings = Settings()
        env_data = env_settings.model_dump(exclude_unset=True)
        logger.info("settings_loaded_env_only_partial", fields=sorted(env_data.keys()))
    except ValidationError as exc:
        logger.warning("settings_env_validation_error", errors=exc.errors())
        env_data = {}

    # 3) merge
    merged: Dict[str, Any] = {**yaml_data, **env_data}

    # 4) enforce required identity fields
    missing: list[str] = []
    for key in ("api_host", "api_base_url"):
        if key in merged and not merged.get(key):
            missing.append(key)

    if missing:
        logger.error("settings_missing_required_fields", missing=missing, yaml_path=str(PARAMETERS_PATH))
        raise ConfigurationError(
            f"Missing required settings: {', '.join(missing)}. "
            "Set them either in environment variables (PIXIV_CLIENT_*) "
            f"or in {PARAMETERS_PATH}."
        )

    # 5) final validation
    try:
        settings = Settings.model_validate(merged)
    except ValidationError as exc:
        logger.error("settings_validation_error", errors=exc.errors())
        raise ConfigurationError(f"Invalid settings: {exc}") from exc

    if not settings.client_hash_secret:
        logger.warning("settings_client_hash_secret_missing")

    logger.info(
        "settings_loaded",
        environment=settings.environment,
        client_name=settings.client_name,
        api_host=settings.api_host,
        api_base_url=str(settings.api_base_url),
        bypass_ip=settings.bypass_ip,
        bypass_port=settings.bypass_port,
        http_timeout_seconds=settings.http_timeout_seconds,
        has_client_hash_secret=bool(settings.client_hash_secret),
    )

    return settings

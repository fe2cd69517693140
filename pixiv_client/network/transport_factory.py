"""
pixiv_client/network/transport_factory.py

Picks the transport a deployment should use from Settings:
- bypass_ip set   -> BypassTransport(bypass_ip)
- otherwise       -> StandardTransport
"""

from __future__ import annotations

from typing import Optional

import structlog

from pixiv_client.network.bypass_transport import BypassTransport
from pixiv_client.network.standard_transport import StandardTransport
from pixiv_client.network.transport_contract import TransportBase
from pixiv_client.utils.settings import Settings, get_settings

logger = structlog.get_logger(__name__)


def build_transport(settings: Optional[Settings] = None) -> TransportBase:
    settings = settings or get_settings()
    if settings.bypass_ip:
        logger.info("transport_selected", transport="bypass", ip=settings.bypass_ip)
        return BypassTransport(settings.bypass_ip, settings=settings)
    logger.info("transport_selected", transport="standard")
    return StandardTransport(settings=settings)

"""
pixiv_client/network/security_headers.py

WHAT THIS FILE IS FOR
---------------------
Derives the `x-client-time` / `x-client-hash` header pair that the Pixiv
API checks on authentication and some app requests.

    client_time = UTC now, formatted "%Y-%m-%dT%H:%M:%S+00:00"
    client_hash = md5(client_time + secret).hexdigest()

A pair is produced fresh on every call. Two calls within the same second
return identical values; calls in different seconds differ.

The secret is injected configuration (Settings.client_hash_secret), never
a module constant.

WHAT THIS FILE IS NOT FOR
-------------------------
- Sending requests
- Logging the secret or the derived hash
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from pixiv_client.utils.errors import ConfigurationError
from pixiv_schemas.security_schema import SecurityHeaderPair

CLIENT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S+00:00"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_client_time(moment: datetime) -> str:
    # Naive datetimes are taken to already be UTC.
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(CLIENT_TIME_FORMAT)


def compute_client_hash(client_time: str, secret: str) -> str:
    return hashlib.md5((client_time + secret).encode("utf-8")).hexdigest()


class SecurityHeaderGenerator:
    """Stateless apart from the injected secret and clock."""

    def __init__(self, secret: Optional[str], clock: Clock = utc_now):
        self._secret = secret
        self._clock = clock

    def generate(self) -> SecurityHeaderPair:
        if not self._secret:
            raise ConfigurationError(
                "client_hash_secret is not configured; "
                "set PIXIV_CLIENT_CLIENT_HASH_SECRET or parameters/parameters.yaml"
            )
        client_time = format_client_time(self._clock())
        return SecurityHeaderPair(
            client_time=client_time,
            client_hash=compute_client_hash(client_time, self._secret),
        )

    def headers(self) -> Dict[str, str]:
        return self.generate().as_headers()

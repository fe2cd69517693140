# -------------------------------------------------------------------
# pixiv_schemas/security_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# Typed value for the per-request security header pair the Pixiv API
# accepts on authentication and some app endpoints:
#
#   x-client-time: 2024-05-01T12:34:56+00:00
#   x-client-hash: md5(x-client-time + shared secret), 32 lowercase hex
#
# The pair is generated fresh for every request and never cached; see
# pixiv_client/network/security_headers.py.
#
# WHAT THIS FILE IS NOT FOR
# ------------------------
# This module does NOT compute hashes or read the clock.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

CLIENT_TIME_HEADER = "x-client-time"
CLIENT_HASH_HEADER = "x-client-hash"


class SecurityHeaderPair(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    client_time: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\+00:00$",
        description="UTC wall-clock time, second precision, explicit +00:00 offset.",
    )
    client_hash: str = Field(
        ...,
        pattern=r"^[0-9a-f]{32}$",
        description="Lowercase hex md5 digest of client_time + secret.",
    )

    def as_headers(self) -> Dict[str, str]:
        return {
            CLIENT_TIME_HEADER: self.client_time,
            CLIENT_HASH_HEADER: self.client_hash,
        }

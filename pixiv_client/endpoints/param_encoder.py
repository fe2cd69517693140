"""
pixiv_client/endpoints/param_encoder.py

WHAT THIS FILE IS FOR
---------------------
Pure conversion of Python call arguments into the flat string map the
Pixiv API expects on the wire.

VALUE RULES
-----------
- None           -> dropped (parameter omitted)
- bool           -> "true" / "false"
- Enum           -> its .value
- anything else  -> str(value)

LIST STYLES (see pixiv_schemas/endpoint_schema.py)
--------------------------------------------------
- csv      [1, 2, 3]  -> "1,2,3"
- space    ["a", "b"] -> "a b"
- indexed  [7, 8]     -> name[0]=7, name[1]=8
- plain    a list is rejected; plain params are scalars

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Perform I/O or logging
- Decide which parameters are required (dispatcher does that)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional

from pixiv_client.utils.errors import InvalidParameters
from pixiv_schemas.endpoint_schema import ParamSpec, ParamStyle


def encode_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return encode_value(value.value)
    return str(value)


def _as_list(value: Any) -> list:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def encode_param(spec: ParamSpec, value: Any) -> Dict[str, str]:
    """Encode one parameter into zero or more wire entries."""
    if value is None:
        return {}

    if spec.style == ParamStyle.PLAIN:
        if isinstance(value, (list, tuple, set)):
            raise InvalidParameters(f"Parameter {spec.name!r} does not accept a list")
        encoded = encode_value(value)
        return {} if encoded is None else {spec.name: encoded}

    items = [encode_value(v) for v in _as_list(value)]
    items = [v for v in items if v is not None]

    if spec.style == ParamStyle.INDEXED:
        return {f"{spec.name}[{i}]": v for i, v in enumerate(items)}

    if not items:
        return {}
    sep = "," if spec.style == ParamStyle.CSV else " "
    return {spec.name: sep.join(items)}

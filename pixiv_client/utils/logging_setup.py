"""
pixiv_client/utils/logging_setup.py

WHAT THIS FILE IS FOR
---------------------
Opt-in structlog configuration for applications embedding the client.

Library modules only ever call `structlog.get_logger(__name__)` and emit
snake_case events with keyword context. They never configure logging
themselves. An application that wants filtered, rendered output calls
`configure_logging()` once at startup, typically with values from Settings:

    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

WHAT THIS FILE IS NOT FOR
-------------------------
- Redacting secrets. Callers of the logger are expected never to pass
  tokens or the hash secret as event context.
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog process-wide.

    Args:
        level: standard level name ("DEBUG", "INFO", ...). Unknown names
            fall back to INFO.
        json_output: render one JSON object per line instead of the
            human-readable console format.
    """
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )

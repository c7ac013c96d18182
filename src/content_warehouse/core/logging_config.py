"""Structured logging for the Content Warehouse API.

``create_app()`` calls :func:`configure_logging` once.  Afterwards both
logging front-ends write through one structlog processor chain:

    structlog.get_logger(__name__).info("cache_hit", key=key)
    logging.getLogger(__name__).error("store_query_failed", extra={"operation": op})

Production levels render one JSON object per line; ``DEBUG`` switches to
structlog's coloured console renderer.  The HTTP middleware in
``api/main.py`` sets :data:`request_id_var` so records emitted while a
request is served carry its ``request_id``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Request ID of the request being served, or ``None`` outside a request."""

REDACTED = "[REDACTED]"

_SECRET_MARKERS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "authorization",
    "database_url",
    "dsn",
)

# Loggers whose INFO output duplicates the request middleware.
_QUIET_LOGGERS: tuple[str, ...] = ("uvicorn.access", "asyncio")


def _is_secret(key: Any) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in _SECRET_MARKERS)


def _mask(mapping: Mapping[Any, Any], depth: int) -> dict[Any, Any]:
    masked: dict[Any, Any] = {}
    for key, value in mapping.items():
        if _is_secret(key):
            masked[key] = REDACTED
        elif depth > 0 and isinstance(value, Mapping):
            masked[key] = _mask(value, depth - 1)
        else:
            masked[key] = value
    return masked


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask values whose key names a credential, one nesting level deep.

    Keys match case-insensitively on any of ``password``, ``secret``,
    ``token``, ``authorization``, ``database_url`` or ``dsn``.
    """
    return _mask(event_dict, depth=1)


def _add_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    request_id = request_id_var.get()
    if request_id is not None:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def _drop_color_message(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    # uvicorn repeats its message with ANSI codes under this key.
    event_dict.pop("color_message", None)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        # Stdlib ``extra=`` fields must be present before redaction runs.
        structlog.stdlib.ExtraAdder(),
        _add_request_id,
        _redact_secrets,
        _drop_color_message,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _stdout_handler(pre_chain: list[Processor], renderer: Processor) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging to stdout through one chain.

    Every record carries ``timestamp`` (ISO 8601, UTC), ``level``,
    ``logger`` and ``event``.  Calling this again replaces the root handler
    instead of adding a second one.

    Args:
        log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` or
            ``CRITICAL`` (any case).  Unknown names fall back to ``INFO``.
    """
    name = log_level.upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO
    console = name == "DEBUG"

    processors = _shared_processors()
    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True)
        if console
        else structlog.processors.JSONRenderer()
    )

    root = logging.getLogger()
    root.handlers[:] = [_stdout_handler(processors, renderer)]
    root.setLevel(level)

    if not console:
        for logger_name in _QUIET_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

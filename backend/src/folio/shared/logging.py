"""Structured logging configuration.

structlog renders its own events and records from plain ``logging`` loggers
(the tool registry, the MCP server, SDKs) through one formatter, so every line
has the same shape: colored console output in development, JSON otherwise.
"""

import logging
import sys
from typing import IO, Any, cast

import structlog

from folio.config import get_settings

HANDLER_NAME = "folio"

# Request-level chatter; failures still surface at WARNING
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "anthropic", "mcp")

_PRE_CHAIN: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _build_formatter(development: bool) -> structlog.stdlib.ProcessorFormatter:
    final: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if development:
        final.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        final += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return structlog.stdlib.ProcessorFormatter(foreign_pre_chain=_PRE_CHAIN, processors=final)


def setup_logging(stream: IO[str] | None = None) -> None:
    """Configure structlog and the root logger.

    Args:
        stream: Destination for log lines, stdout by default. The MCP stdio
            server passes stderr since stdout carries the protocol.
    """
    settings = get_settings()

    structlog.configure(
        processors=[
            *_PRE_CHAIN,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(_build_formatter(settings.is_development))

    root = logging.getLogger()
    # Repeated setup (tests, reloads) replaces our handler instead of stacking
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.app_debug else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


def bind_request_context(**values: Any) -> None:
    """Bind values (e.g. a chat session id) into the per-request log context."""
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in values.items() if value is not None}
    )


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()

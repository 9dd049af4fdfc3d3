# src/gradle_mcp/core/logging.py
"""Logging setup for gradle-mcp.

Every record is rendered by structlog, whether it comes from our own
``structlog.get_logger`` calls or from the stdlib loggers of the MCP SDK,
uvicorn and starlette (those reach the renderer via ProcessorFormatter).
A single handler on the root logger writes to stderr: in stdio mode the
server's stdout is the protocol channel and carries MCP messages only.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

if TYPE_CHECKING:
    from gradle_mcp.core.config import ServerSettings

# Per-request chatter from the SSE transport and the event loop.
_NOISY_LOGGERS: tuple[str, ...] = ("sse_starlette", "sse_starlette.sse", "uvicorn.access", "asyncio")


def _drop_formatter_keys(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip the ``_record``/``_from_structlog`` keys ProcessorFormatter adds."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _pre_chain() -> list[Any]:
    """Processors every record runs through before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [_drop_formatter_keys, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    # Build clients often capture stderr into plain text logs
    return [_drop_formatter_keys, structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Install the gradle-mcp log pipeline, replacing any earlier one.

    Can be called again (the CLI does so once settings are loaded, tests
    do so per case); loggers are not cached, so the new pipeline applies
    to loggers created before the call.

    Args:
        json_output: One JSON object per line instead of console text.
        level: Root level name (DEBUG, INFO, WARNING, ERROR).
        stream: Where records are written; stderr when None.
    """
    log_level = getattr(logging, level.upper())
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=_render_chain(json_output), foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # DEBUG on the server must not turn on per-request access lines
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def configure_from_settings(settings: ServerSettings) -> None:
    """Apply the log format and level (``debug`` forces DEBUG) from settings."""
    configure_logging(json_output=settings.json_logs, level=settings.effective_log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger

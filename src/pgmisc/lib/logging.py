"""Logging setup for the CLI and the MCP server.

Everything logs to stderr. Stdout belongs to command output in the CLI and
to the protocol stream in the MCP server.
"""

from __future__ import annotations

import logging as std_logging
import sys
from typing import Final

import structlog

# -v count -> level. Warnings from signal dispatch show at the default level.
_LEVELS: Final[tuple[int, ...]] = (std_logging.WARNING, std_logging.INFO, std_logging.DEBUG)


def _renderer(json_mode: bool) -> structlog.typing.Processor:
    if json_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(json_mode: bool = False, verbosity: int = 0) -> None:
    """Configure structlog, plus stdlib logging for config-file warnings."""

    level = _LEVELS[min(max(verbosity, 0), len(_LEVELS) - 1)]

    stderr_handler = std_logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(std_logging.Formatter("%(levelname)s: %(message)s"))
    std_logging.basicConfig(level=level, handlers=[stderr_handler], force=True)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_mode:
        processors.append(structlog.processors.dict_tracebacks)
    processors.append(_renderer(json_mode))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

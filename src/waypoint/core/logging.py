# src/waypoint/core/logging.py
"""Logging setup for waypoint.

Modules log through ``structlog.get_logger(__name__)``. configure_logging()
routes those events, and records from plain ``logging`` loggers (e.g.
Dynaconf), through one stderr handler, so progress lines on stdout are
never interleaved with log output.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

_PRE_CHAIN: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderers(json_output: bool) -> list[Any]:
    if json_output:
        return [
            ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
    ]


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Configure structlog and the root logger.

    Safe to call repeatedly: the CLI configures once from its flags and
    again after settings are loaded.

    Args:
        json_output: One JSON object per line instead of console rendering
        level: DEBUG, INFO, WARNING or ERROR
    """
    log_level = getattr(logging, level.upper())

    structlog.configure(
        processors=[*_PRE_CHAIN, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=_renderers(json_output), foreign_pre_chain=_PRE_CHAIN))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Dynaconf is chatty at DEBUG
    logging.getLogger("dynaconf").setLevel(max(log_level, logging.WARNING))

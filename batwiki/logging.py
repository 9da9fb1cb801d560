# batwiki/logging.py
"""
Structured logging for batwiki using structlog.
Library modules only call structlog.get_logger(__name__); the CLI configures output once.
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: int = logging.WARNING, *, json_output: bool = False) -> None:
    """
    Route structlog through the standard logging module, writing to stderr
    so stdout stays clean for --json output.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # urllib3 logs every connection at DEBUG; keep it quieter than ours
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))

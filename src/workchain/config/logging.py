"""structlog configuration for the structured diagnostic backend.

Two output modes:
- Human (default): console-rendered lines to stderr
- JSON (log_json=True): structured JSON lines to stderr

Only :class:`workchain.diagnostics.StructlogSink` relies on this; the
default console sink writes plain severity-prefixed lines and needs no setup.
"""

from __future__ import annotations

import logging
import sys

import structlog

LOGGER_NAME = "workchain"


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and route the ``workchain`` logger to stderr.

    Args:
        verbose: Enable DEBUG-level output. When False, only INFO+.
        log_json: Use JSON renderer instead of console renderer.
    """
    level = logging.DEBUG if verbose else logging.INFO

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    # The handler only ever sees structlog events.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    wc_logger = logging.getLogger(LOGGER_NAME)
    wc_logger.handlers.clear()
    wc_logger.addHandler(handler)
    wc_logger.setLevel(level)
    wc_logger.propagate = False

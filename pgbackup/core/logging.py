"""Structured diagnostic logging setup using structlog.

The operator-facing alert stream lives in :mod:`pgbackup.alerts`; this
module only configures the internal event log of the ``pgbackup`` package
on stderr. Other libraries' loggers and the root logger are left alone.
"""

from __future__ import annotations

import logging
import sys

import structlog

from pgbackup.alerts.formatters import TIMESTAMP_FORMAT
from pgbackup.core.config import get_settings

PACKAGE_LOGGER = "pgbackup"


def resolve_level(level: str | None, verbose: bool = False) -> int:
    """Pick the diagnostic level.

    An explicit ``--log-level`` wins. Otherwise ``--verbose`` lowers the
    configured level to INFO so lifecycle events (log target, trap, cleanup)
    show up next to the verbose alerts. Unknown names fall back to WARNING.
    """
    if level:
        return logging.getLevelName(level.upper()) if _known(level) else logging.WARNING
    configured = get_settings().logging.level
    base = logging.getLevelName(configured.upper()) if _known(configured) else logging.WARNING
    return min(base, logging.INFO) if verbose else base


def _known(name: str) -> bool:
    return isinstance(logging.getLevelName(name.upper()), int)


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    verbose: bool = False,
    program: str | None = None,
) -> logging.Logger:
    """Configure structlog for the ``pgbackup`` logger tree.

    Args:
        level: Log level override (e.g. "DEBUG"). Uses config if None.
        fmt: Renderer format override ("json" or "console"). Uses config if None.
        verbose: Mirror the ``--verbose`` switch (see :func:`resolve_level`).
        program: Bound to every event as ``program``.

    Returns:
        The configured package logger.
    """
    log_format = fmt or get_settings().logging.format

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            # Same clock format as the alert stream so both can be read together.
            structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    if program:
        structlog.contextvars.bind_contextvars(program=program)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        ),
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(resolve_level(level, verbose))
    package_logger.propagate = False
    return package_logger

"""structlog setup for the search client.

Stdout carries the rendered search states, so log events are written to
stderr as JSON lines.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: int | str = logging.INFO,
    *,
    environment: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib records (SQLAlchemy echo, httpx) to ``stream``.

    ``environment``, when given, is bound as a context variable and appears on
    every event.
    """

    level = _resolve_level(level)
    stream = stream or sys.stderr
    logging.basicConfig(
        level=level,
        format="%(name)s %(levelname)s %(message)s",
        handlers=[logging.StreamHandler(stream)],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
    if environment is not None:
        structlog.contextvars.bind_contextvars(environment=environment)


logger = structlog.get_logger()

__all__ = ["configure_logging", "logger"]

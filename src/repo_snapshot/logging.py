"""Structured logging for repo_snapshot.

Every event is one JSON object per line, written to stderr or to a log file::

    {"event": "scan_done", "root": "/work/app", "logger": "repo_snapshot", "level": "info", ...}

The level comes from the `level` argument, else from `REPO_SNAPSHOT_LOG_LEVEL`,
else INFO. Loggers are not cached, so module-level `logger` objects follow a
later reconfiguration (the CLI reconfigures once its options are parsed).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "repo_snapshot"
LOG_LEVEL_ENV = "REPO_SNAPSHOT_LOG_LEVEL"

_LOGGING_CONFIGURED = False


def resolve_level(level: int | str | None = None) -> int:
    """Numeric logging level from a name ("debug"), a number, or the environment.

    Unknown names fall back to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _handler(filename: str | Path | None) -> logging.Handler:
    if filename:
        return logging.FileHandler(str(filename), encoding="utf-8")
    return logging.StreamHandler(sys.stderr)


def setup_logging(
    filename: str | Path | None = None,
    *,
    level: int | str | None = None,
    force: bool = False,
) -> structlog.BoundLogger:
    """Configure structlog on top of the standard logging module.

    Args:
        filename: Log file path. If None, logs are written to stderr.
        level: Minimum level, see `resolve_level`.
        force: Replace a previous configuration instead of keeping it.

    Returns:
        The repo_snapshot logger.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED and not force:
        return structlog.get_logger(LOGGER_NAME)

    threshold = resolve_level(level)
    logging.basicConfig(level=threshold, handlers=[_handler(filename)], format="%(message)s", force=force)
    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _LOGGING_CONFIGURED = True
    return structlog.get_logger(LOGGER_NAME)


logger = setup_logging()

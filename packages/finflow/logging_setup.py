"""Centralized logging for ``finflow``.

Entry points (the CLI) call :func:`configure_logging`; library modules only
ever call ``get_logger("finflow.<module>")`` and never attach handlers. Until
an entry point configures logging, the package logger carries a
``NullHandler`` and stays silent.

Level resolution: explicit argument, then ``FINFLOW_LOG_LEVEL``, then WARNING
(INFO would interleave pipeline chatter with CLI tables).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "finflow"
LEVEL_ENV_VAR = "FINFLOW_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Map an int, a level name or a numeric string to a ``logging`` level."""

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.WARNING
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    # Unknown names come back as "Level <name>".
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach one ``StreamHandler`` to the ``finflow`` logger.

    Safe to call repeatedly: later calls reuse the handler installed by the
    first call, pointing it at the current stream and level.
    """

    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    resolved = resolve_level(level)

    if _handler is None:
        for h in list(logger.handlers):
            if isinstance(h, logging.NullHandler):
                logger.removeHandler(h)
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
        logger.addHandler(_handler)
        logger.propagate = False

    # Plain assignment: setStream() would flush a previous stream that may be closed.
    _handler.stream = stream if stream is not None else sys.stderr
    _handler.setLevel(resolved)
    logger.setLevel(resolved)
    return _handler


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]

"""loguru setup for a short-lived CLI process.

stderr gets a terse line per record (timestamps and call sites only at
DEBUG); stdout stays reserved for command output.  An optional rotating log
file keeps the full detail of every run.  Records from stdlib loggers
(sqlalchemy, alembic, docker, urllib3) are forwarded into loguru.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger

# Each -v steps one level more verbose than the configured one.
_LEVELS = ("ERROR", "WARNING", "INFO", "DEBUG")

_TERSE_FORMAT = "<level>{level: <8}</level> <level>{message}</level>"
_DETAILED_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

_NOISY_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration", "docker", "urllib3")


class _InterceptHandler(logging.Handler):
    """Forward a stdlib record to loguru, keeping the original caller."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def effective_level(level: str, verbose: int = 0) -> str:
    """Raise *level* by *verbose* steps, never past DEBUG."""
    level = level.upper()
    if level not in _LEVELS:
        return level
    index = min(_LEVELS.index(level) + verbose, len(_LEVELS) - 1)
    return _LEVELS[index]


def setup_logging(level: str = "WARNING", *, verbose: int = 0, log_file: str | Path | None = None) -> str:
    """Make loguru the only sink for this invocation and return the stderr level."""
    level = effective_level(level, verbose)

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=_DETAILED_FORMAT if level == "DEBUG" else _TERSE_FORMAT,
    )
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(path, level="DEBUG", format=_DETAILED_FORMAT, rotation="1 MB", retention=3, colorize=False)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised (stderr level={}, file={})", level, log_file or "-")
    return level

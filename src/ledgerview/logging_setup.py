"""Logging for ``ledgerview``.

The CLI calls ``configure_logging`` once per invocation; modules only use
``get_logger(__name__)``. Until configured the package logger carries a
``NullHandler`` and stays silent.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

PACKAGE_LOGGER = "ledgerview"
LOG_LEVEL_ENV = "LEDGERVIEW_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def resolve_level(level: Union[int, str, None] = None, verbose: bool = False) -> int:
    """Pick the effective level.

    ``verbose`` wins, then an explicit ``level``, then ``LEDGERVIEW_LOG_LEVEL``.
    Fetch failures are logged as warnings, so that is the default.
    """
    if verbose:
        return logging.DEBUG
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(
    verbose: bool = False,
    level: Union[int, str, None] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Send package logs to ``stream`` (stderr by default).

    Calling it again updates the level and stream of the existing handler;
    the package logger never gets a second one.

    Returns:
        The package logger
    """
    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    numeric_level = resolve_level(level, verbose)

    if _handler is None:
        for handler in list(logger.handlers):
            if isinstance(handler, logging.NullHandler):
                logger.removeHandler(handler)
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)
        logger.propagate = False
    elif isinstance(_handler, logging.StreamHandler):
        # the previous stream may be closed already, so it is not flushed
        _handler.stream = stream or sys.stderr

    logger.setLevel(numeric_level)
    return logger


def reset_logging() -> None:
    """Drop the handler installed by ``configure_logging``."""
    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)

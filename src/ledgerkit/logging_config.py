"""Logging setup for the ledgerkit command line."""

import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "LEDGERKIT_LOG_LEVEL"

# Libraries whose INFO output is too chatty for a CLI
NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
]


class _LedgerkitHandler(logging.StreamHandler):
    """Marker type so repeated setup replaces our handler and nothing else."""


def setup_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Configure the ``ledgerkit`` logger to write to stderr.

    Args:
        level: Log level name or number. Defaults to LEDGERKIT_LOG_LEVEL, then WARNING.

    Returns:
        The configured ``ledgerkit`` logger
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger("ledgerkit")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, _LedgerkitHandler):
            logger.removeHandler(handler)

    handler = _LedgerkitHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised at %s", logging.getLevelName(level))
    return logger

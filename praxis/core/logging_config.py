"""Logging setup shared by the library and the ``praxis-validate`` command.

Modules log through ``logging.getLogger(__name__)``; everything lives
under the ``praxis`` logger, which :func:`setup_logging` configures.
"""

import logging
from logging import Logger

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"
LOGGER_NAME = "praxis"


def setup_logging(level: int | str = logging.INFO) -> Logger:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.debug("Logging initialized.")
    return logger

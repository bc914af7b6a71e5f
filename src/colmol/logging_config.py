"""Logging setup for the command line interface."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: int = logging.WARNING, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``colmol`` logger.

    Args:
        level: Logging level for the package logger
        log_file: Also append records to this file

    Returns:
        The configured ``colmol`` logger
    """
    logger = logging.getLogger("colmol")
    logger.setLevel(level)
    logger.propagate = False

    # Drop handlers from an earlier call so records are not duplicated.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

"""Logging configuration for the nbody package."""
from __future__ import annotations

import logging
import logging.handlers
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the dedicated ``nbody`` logger.

    Logs go to the console and, when ``log_file`` is given, to a rotating
    file (1MB, 5 backups). The logger does not propagate to the root logger
    so third-party libraries keep their own configuration. Calling this
    again replaces the previous handlers.
    """
    logger = logging.getLogger("nbody")
    logger.setLevel(level.upper())
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(fmt)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=1024 * 1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at level %s", level.upper())
    return logger

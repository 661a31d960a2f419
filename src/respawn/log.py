"""Logging setup and terminal helpers for the respawn CLI."""

import logging
import os
import sys

LOGGER_NAME = "respawn"
LOG_FORMAT = "[respawn] %(levelname)s %(message)s"


def setup_logging(level: int = logging.INFO, *, quiet: bool = False) -> logging.Logger:
    """
    Configure the ``respawn`` logger.

    Handlers are replaced rather than stacked, so calling this again (e.g.
    from tests) is safe. ``quiet`` raises the threshold to WARNING.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.WARNING if quiet else level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def clear_screen() -> None:
    if sys.platform == "win32":
        os.system("cls")
    else:
        sys.stdout.write("\x1b[2J\x1b[H")
        sys.stdout.flush()

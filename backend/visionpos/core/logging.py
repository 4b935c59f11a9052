"""Logging setup for the API process."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Route the package loggers to stdout.

    Safe to call more than once: the handler is installed a single time and
    later calls only adjust the level.
    """
    root = logging.getLogger("visionpos")
    root.setLevel(level.upper())

    if not any(getattr(h, "_visionpos", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._visionpos = True  # type: ignore[attr-defined]
        root.addHandler(handler)

"""Logging setup for scripts that drive the engine."""
from __future__ import annotations

import logging
import sys


_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(level: str = "INFO", format_type: str = "structured") -> logging.Logger:
    """Attach a stdout handler to the ``nested_sums`` logger."""
    log_level = _LEVELS.get(level.upper(), logging.INFO)

    if format_type == "structured":
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        formatter = logging.Formatter("%(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger("nested_sums")
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = ["configure_logging"]

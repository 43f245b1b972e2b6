"""Logging configuration for MecSentinel."""

import logging
import sys


def setup_logging(level: int = logging.INFO, module_name: str = "mecsentinel") -> logging.Logger:
    """Configure and return the package logger with consistent formatting.

    Calling it again only updates the level.
    """
    logger = logging.getLogger(module_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger

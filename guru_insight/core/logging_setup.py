"""Logging setup helper for the insight CLI."""

from __future__ import annotations

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "WARNING", fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure the ``guru_insight`` logger with a stderr handler.

    Output goes to stderr so stdout stays clean for text/json results.
    Calling it again replaces the previous handler.
    """
    formatter = logging.Formatter(fmt)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    logger = logging.getLogger("guru_insight")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers = [console_handler]

    return logger

"""
Logging configuration for the application.

Resolution modules log through ``logging.getLogger(__name__)``; this module
only wires the root logger to the console at the configured level.
"""

import logging
import sys

from .config import get_settings


def setup_logging() -> logging.Logger:
    """
    Configure the root logger with a console handler.

    Safe to call more than once: existing handlers are replaced.

    Returns:
        The configured root logger.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return root_logger

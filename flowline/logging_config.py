"""Logging configuration for Flowline.

Application loggers follow the configured level while chatty
third-party libraries are held at WARNING.
"""

import logging
import sys
from typing import Literal

from flowline.settings import get_settings

# Third-party loggers that are noisy at INFO
NOISY_LOGGERS = [
    "apscheduler",
    "apscheduler.scheduler",
    "apscheduler.executors.default",
    "asyncio",
    "httpcore",
    "httpx",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
]


def suppress_noisy_loggers() -> None:
    """Suppress noisy third-party loggers."""
    for logger_name in NOISY_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.handlers.clear()


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
) -> None:
    """Configure application logging.

    Args:
        level: Override log level (defaults to settings.log_level)
    """
    log_level = level or get_settings().log_level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level))
    console_handler.setFormatter(
        logging.Formatter(
            "%(levelname)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    logging.getLogger("flowline").setLevel(getattr(logging, log_level))

    suppress_noisy_loggers()

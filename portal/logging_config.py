"""
Logging configuration.

One console handler on the root logger, human-readable format.
Safe to call more than once (app startup and the seed script both call it).
"""

import logging

from portal import config

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "portal-console"


def setup_logging(level: str | int | None = None) -> None:
    """Configure the root logger once."""
    root_logger = logging.getLogger()

    if any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        return

    root_logger.setLevel(level or config.LOG_LEVEL)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    # Suppress noisy loggers
    for name in ("botocore", "boto3", "urllib3", "s3transfer", "PIL"):
        logging.getLogger(name).setLevel(logging.WARNING)

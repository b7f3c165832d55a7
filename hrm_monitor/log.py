"""Logging configuration for the monitor and its BLE/WebSocket libraries."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

APP_LOGGER = "hrm_monitor"

VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def setup_logging(level: str = "INFO") -> None:
    """Route monitor logs to stderr at the requested level.

    bleak and websockets only show warnings and errors, whatever level the
    monitor itself uses, so per-notification debug output stays readable.

    Args:
        level: Level name for the hrm_monitor loggers, case-insensitive
    """
    requested = level.upper()
    known = requested in VALID_LEVELS

    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(getattr(logging, requested if known else "INFO"))

    # Reported through the logger just configured
    if not known:
        app_logger.warning("Unknown log level '%s', defaulting to INFO", level)

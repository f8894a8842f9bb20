"""Logging configuration for the relay server."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

# aiohttp logs one access line per request at INFO
ACCESS_LOGGER = "aiohttp.access"


def setup_logging(level: int | str = logging.INFO, access_log: bool = True) -> None:
    """Route relay and aiohttp records to stdout at ``level``."""
    if isinstance(level, str):
        level = level.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    if not access_log:
        logging.getLogger(ACCESS_LOGGER).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a relay module, namespaced under ``relay_server``."""
    if not name.startswith("relay_server"):
        name = f"relay_server.{name}"
    return logging.getLogger(name)

"""Logging setup for command-line builds."""

import logging
import sys
from typing import Optional, TextIO


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Request and event loop chatter, never part of a build's stage trail
QUIET_LOGGERS = ("asyncio", "httpx", "httpcore")


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> int:
    """Send build logs to ``stream`` (stdout by default); returns the level in effect."""
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return log_level

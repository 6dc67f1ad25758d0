"""
Logging for the storefront API.

One `storefront` logger writes to stdout; modules take children of it with
get_logger("<area>"). The initial level comes from LOG_LEVEL; the app calls
set_level() again once settings are loaded.
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers held at WARNING unless running at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "passlib")

logger = logging.getLogger("storefront")

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(_handler)

# Avoid duplicate lines through the root logger (uvicorn configures it)
logger.propagate = False


def set_level(level: Optional[str]) -> str:
    """Apply a level name to the package logger; unknown names fall back to INFO."""
    name = (level or "INFO").upper()
    if not isinstance(logging.getLevelName(name), int):
        name = "INFO"
    logger.setLevel(name)
    for handler in logger.handlers:
        handler.setLevel(name)
    quiet = logging.DEBUG if name == "DEBUG" else logging.WARNING
    for other in QUIET_LOGGERS:
        logging.getLogger(other).setLevel(quiet)
    return name


set_level(os.getenv("LOG_LEVEL"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Child logger `storefront.<name>`, or the package logger itself."""
    if name:
        return logging.getLogger(f"storefront.{name}")
    return logger

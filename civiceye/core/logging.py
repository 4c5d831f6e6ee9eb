"""
CivicEye AI - Logging Configuration
Stdout logging for the API process and the civiceye logger namespace.
"""

import logging
import sys
from typing import Optional
from functools import lru_cache

from civiceye.core.config import settings

ROOT_LOGGER = "civiceye"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

# Third-party loggers that are too chatty at INFO: Gemini and the
# geocoder go through httpx, uploads are decoded by Pillow
NOISY_LOGGERS = ("httpx", "httpcore", "PIL", "multipart")


def resolve_level(level: Optional[str] = None) -> int:
    """
    Turn a level name into a logging level.

    Raises:
        ValueError: Unknown level name
    """
    name = (level or settings.log_level).upper()
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {name}")
    return value


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure stdout logging and return the civiceye logger.

    Args:
        level: Log level name, defaults to settings.log_level
        format_string: Custom format string for log messages

    Returns:
        The civiceye root logger
    """
    log_level = resolve_level(level)

    logging.basicConfig(
        level=log_level,
        format=format_string or LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)

    # Library noise stays at WARNING unless the app itself is debugging
    quiet_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    return logger


@lru_cache()
def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger inside the civiceye namespace.

    Names from outside the package (``__main__``, scripts) are nested under
    ``civiceye`` so they share its level.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)

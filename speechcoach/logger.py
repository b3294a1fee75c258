import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LOGGING_CONFIGURED = False


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[Union[int, str]] = None) -> int:
    """
    Configure root logging once and return the effective level.

    An explicit level wins over LOG_LEVEL; INFO is the fallback.
    """
    global _LOGGING_CONFIGURED

    resolved = _resolve_level(level)
    root_logger = logging.getLogger()

    if not _LOGGING_CONFIGURED:
        logging.basicConfig(format=LOG_FORMAT, level=resolved)
        for handler in root_logger.handlers:
            handler.setLevel(resolved)
        _LOGGING_CONFIGURED = True

    root_logger.setLevel(resolved)
    return resolved


def get_logger(name: str) -> logging.Logger:
    if not _LOGGING_CONFIGURED:
        configure_logging()
    return logging.getLogger(name)

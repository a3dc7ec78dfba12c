"""
Logging setup for the electron_cloud namespace.

Every module logs through ``logging.getLogger(__name__)``; ``setup_logging``
attaches the handlers once on the package logger. Streamlit re-executes the
page script on each interaction, so repeated calls replace the handlers
instead of stacking them.
"""
import logging
import sys
from typing import List, Optional, Union

LOGGER_NAME = "electron_cloud"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def resolve_level(level: Union[int, str]) -> int:
    """Accept a level number or name ("debug", "INFO", ...); unknown names give INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    return handlers


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger

    :param level: level number or name
    :param log_file: optional path; the file is truncated on each call
    :return: the configured ``electron_cloud`` logger
    """
    level = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(log_file):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    # Records would otherwise print a second time through Streamlit's root handler
    logger.propagate = False

    logger.debug("Logging configured at %s", logging.getLevelName(level))
    return logger

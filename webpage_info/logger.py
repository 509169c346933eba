"""
Logging for the webpage_info pipeline.

Every stage logs through a child of the "webpage_info" logger
(webpage_info.fetcher, webpage_info.ssrf, ...). Handlers live only on the
package logger, so configuring it once covers the fetcher, the SSRF guard
and the extractor alike.

Output goes to stderr: the run_* scripts print their JSON result on stdout.
WEBPAGE_INFO_LOG_LEVEL (a level name such as "debug") sets the level used at
import time; it defaults to WARNING so library callers see only problems.
"""

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "webpage_info"
LOG_LEVEL_ENV = "WEBPAGE_INFO_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def resolve_level(level: Union[int, str]) -> int:
    """
    Turn a level name ("info", "WARNING") or number into a logging level.

    Raises:
        ValueError: Unknown level name
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def setup_logger(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    name: str = LOGGER_NAME
) -> logging.Logger:
    """
    Configure the package logger and return it.

    The first call attaches a stderr handler (plus a file handler when
    log_file is given). Later calls, e.g. from a --verbose flag, only move
    the logger and its existing handlers to the new level.
    """
    level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    _attach(logger, logging.StreamHandler(sys.stderr), level)
    if log_file:
        _attach(logger, logging.FileHandler(log_file), level)

    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger for one pipeline stage, e.g. get_module_logger("fetcher")."""
    return logging.getLogger(f"{LOGGER_NAME}.{module_name}")


logger = setup_logger(level=os.environ.get(LOG_LEVEL_ENV) or logging.WARNING)

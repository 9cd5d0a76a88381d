"""
Logging module
One logger for the whole service, writing to stdout and to the configured log file
"""

import logging
import sys
from pathlib import Path
from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "mindful_reflections", level: str = None, log_file: str = None) -> logging.Logger:
    """
    Set up a logger

    Args:
        name: logger name
        level: log level name, defaults to settings.log_level
        log_file: log file path, defaults to settings.log_file

    Returns:
        the configured logger
    """
    level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    log_file = log_file or settings.log_file
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_file, encoding="utf-8")):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


logger = setup_logger()

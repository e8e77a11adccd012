# log_utils.py

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import LOG_DATE_FORMAT, LOG_FORMAT


def setup_logger(
    name=None,
    log_file=None,
    level=logging.INFO,
    console=True,
    max_bytes=10 * 1024 * 1024, # 10MB
    backup_count=5,
):
    """
    Configure a logger with a console handler and an optional rotating file.

    Args:
        name: logger name (None configures the root logger, so that every
            module logger of the simulation reports through it)
        log_file: path of the log file (None logs to the console only)
        level: logging level, as a number or a name such as "DEBUG"
        console: whether to log to stderr
        max_bytes: size at which the log file is rotated
        backup_count: number of rotated files kept

    Returns:
        The configured logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid stacking handlers when called twice
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger

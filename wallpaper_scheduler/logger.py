#!/usr/bin/env python3
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = 'wallpaper_scheduler'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name, level=logging.INFO):
    """Get a logger for the given module name.

    The stderr handler is attached once to the package logger, module loggers
    propagate to it.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
        package_logger.setLevel(level)
    return logging.getLogger(name)


def add_file_handler(log_file, max_bytes=1_000_000, backup_count=3):
    """Also write package logs to a size-rotated file."""
    log_path = Path(log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_path.resolve():
            return handler
    handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    return handler


def set_level(level):
    """Set the level of the package logger (e.g. logging.DEBUG for --verbose)."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

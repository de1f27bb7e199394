"""
core/logger.py -- Root logging configuration.

Console output by default; when LOG_FILE is set, a size-rotated file
(100 MB x 5) replaces the console handler. Every module logs through a named
logger under the "boilerplate." namespace.
"""

import logging
from logging.handlers import RotatingFileHandler

_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_MAX_BYTES = 100 * 1024 * 1024
_BACKUP_COUNT = 5


def configure_logging(level: str = "INFO", log_file: str = "") -> None:
    handler: logging.Handler
    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    logging.basicConfig(
        level=level.upper(),
        format=_FORMAT,
        datefmt=_DATEFMT,
        handlers=[handler],
    )

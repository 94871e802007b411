"""Log setup for stagetrim runs.

Console output always goes through the root logger. A rotating
``stagetrim.log`` is added when file logging is enabled. The AWS SDK
loggers stay at WARNING unless the run itself is at DEBUG.
"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from stagetrim.config import LoggingConfig

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE_NAME = "stagetrim.log"
MAX_LOG_BYTES = 1_000_000
LOG_BACKUPS = 5
SDK_LOGGERS = ("boto3", "botocore", "urllib3")


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
    )
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    return handler


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level, format=DEFAULT_FORMAT)

    if config.level != "DEBUG":
        for name in SDK_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if config.file_logging:
        logging.getLogger().addHandler(_file_handler(Path(config.log_dir)))

"""
logger.py

Centralized logging configuration for flat_db.
Console output goes to stderr so query results on stdout stay clean.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from flat_db.config import get_log_config

CONSOLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ColoredFormatter(logging.Formatter):
    """Colours the level name when stderr is a terminal"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        if not sys.stderr.isatty():
            return super().format(record)
        # other handlers share the record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{self.COLORS.get(record.levelname, '')}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logger(
    name: str,
    level: Union[int, str] = logging.WARNING,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Attach a stderr handler (and a file handler when log_file is given)
    to the named logger. Loggers that already have handlers are returned as is.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ColoredFormatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger configured from FLAT_DB_LOG_LEVEL / FLAT_DB_LOG_FILE"""
    config = get_log_config()
    log_file = Path(config["file"]) if config["file"] else None
    return setup_logger(name, level=config["level"], log_file=log_file)


def set_level(level: Union[int, str]) -> None:
    """Change the level of every flat_db / web_app logger already created."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if name.split(".")[0] in ("flat_db", "web_app"):
            logger.setLevel(level)

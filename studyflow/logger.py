"""
StudyFlow - Logging
Coloured console output plus an optional rotating file, both driven by LogConfig.
"""

import logging
import sys
import os
from logging.handlers import RotatingFileHandler

from .config import get_log_config


class CustomFormatter(logging.Formatter):
    """Custom formatter with colors for console output"""

    grey = "\x1b[38;20m"
    blue = "\x1b[34;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"

    FORMATS = {
        logging.DEBUG: grey + format_str + reset,
        logging.INFO: blue + format_str + reset,
        logging.WARNING: yellow + format_str + reset,
        logging.ERROR: red + format_str + reset,
        logging.CRITICAL: bold_red + format_str + reset
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)


def setup_logger(name: str = "StudyFlow", level: int = None) -> logging.Logger:
    """Configures and returns a logger instance.

    Handlers are attached once per name; later calls return the logger as is.
    """
    log_config = get_log_config()

    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else log_config.level.upper())

    # Prevent duplicate handlers if function is called multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(CustomFormatter())
    logger.addHandler(console_handler)

    if log_config.file_enabled:
        os.makedirs(log_config.directory, exist_ok=True)

        log_file = os.path.join(log_config.directory, log_config.file_name)
        file_handler = RotatingFileHandler(log_file, maxBytes=log_config.max_bytes,
                                           backupCount=log_config.backup_count, encoding="utf-8")
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


# Global logger instance
logger = setup_logger()

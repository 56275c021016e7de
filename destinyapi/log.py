"""
Logging functionality
"""

import abc
import logging
import os
import sys

from typing import Dict, List, Type

from destinyapi import consts

_LOG_PATH = os.path.join(consts.APPDATA_DIR, 'destinyapi.log')
_FORMAT = '[%(asctime)s %(name)s:%(lineno)d %(levelname)s]\t%(message)s'


class Coloring(abc.ABC):
    """Defines coloring for loggers."""

    console_colors: Dict[int, str]
    reset: str


class ConsoleColoring(Coloring):
    """Coloring for console logging."""

    console_colors = {
        logging.DEBUG: '\x1b[38;20m',
        logging.INFO: '\x1b[38;20m',
        logging.WARNING: '\x1b[33;20m',
        logging.ERROR: '\x1b[31;1m',
        logging.CRITICAL: '\x1b[31;20m',
    }
    reset = '\x1b[0m'


class PlainColoring(Coloring):
    """No coloring, used for files."""

    console_colors = {}
    reset = ''


class ColorFormatter(logging.Formatter):
    """Formatter with custom format string and coloring."""

    def __init__(self, fmt: str, coloring: Type[Coloring]):
        super().__init__()
        self.fmt = fmt
        self.coloring = coloring

    def format(self, record: logging.LogRecord) -> str:
        log_fmt = (
            self.coloring.console_colors.get(record.levelno, '')
            + self.fmt
            + self.coloring.reset
        )
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


def get_logger(name: str) -> logging.Logger:
    """Creates a formatted logger given a name."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Modules may be reloaded (tests), only attach handlers once
    if logger.handlers:
        return logger

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(ColorFormatter(_FORMAT, ConsoleColoring))
    stream.setLevel(logging.INFO)

    logfile = logging.FileHandler(_LOG_PATH, 'a+', encoding='utf-8')
    logfile.setFormatter(ColorFormatter(_FORMAT, PlainColoring))

    handlers: List[logging.Handler] = [stream, logfile]
    for handler in handlers:
        logger.addHandler(handler)

    return logger

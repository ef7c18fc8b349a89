"""Logging setup: coloured console lines for the terminal, JSON lines for files"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config.config import config

# Record attributes copied into JSON output when a caller binds them
CONTEXT_FIELDS = ("component", "song_id", "endpoint", "query", "status", "generation")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
TIME_FORMAT = "%H:%M:%S"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Ansi:
    RESET = "\033[0m"
    DIM = "\033[90m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    ALERT = "\033[41m\033[97m"


class ColoredFormatter(logging.Formatter):
    """Console formatter: level in colour, bound component as a dim tag"""

    LEVEL_COLORS = {
        logging.DEBUG: Ansi.DIM,
        logging.INFO: Ansi.CYAN,
        logging.WARNING: Ansi.YELLOW,
        logging.ERROR: Ansi.RED,
        logging.CRITICAL: Ansi.ALERT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Ansi.RESET)
        line = super().format(record)

        # Colour the pieces after formatting so the record stays clean for other handlers
        line = line.replace(record.levelname, f"{color}{record.levelname}{Ansi.RESET}", 1)
        if self.usesTime():
            line = line.replace(record.asctime, f"{Ansi.DIM}{record.asctime}{Ansi.RESET}", 1)
        line = line.replace(f" {record.name} ", f" {Ansi.BLUE}{record.name}{Ansi.RESET} ", 1)

        component = getattr(record, "component", None)
        if component:
            line = line.replace(record.getMessage(), f"{Ansi.MAGENTA}[{component}]{Ansi.RESET} {record.getMessage()}", 1)
        return line


class StructuredFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                data[name] = value

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Adapter that binds fields (component, song_id, ...) to every record"""

    def process(self, msg: str, kwargs: dict) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context) -> "ContextLogger":
        """New adapter with extra bound fields"""
        return ContextLogger(self.logger, {**self.extra, **context})


def _level(name: str) -> int:
    # PRODUCTION selects JSON output at INFO
    if name.upper() == "PRODUCTION":
        return logging.INFO
    return getattr(logging, name.upper(), logging.INFO)


def setup_logger(
    name: str = config.APP_NAME,
    structured: Optional[bool] = None,
    colored: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the named logger once.

    Args:
        name: Logger name
        structured: JSON console output; defaults to LOG_LEVEL=PRODUCTION
        colored: ANSI colours; defaults to whether stderr is a terminal
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _level(config.LOG_LEVEL)
    logger.setLevel(level)

    if structured is None:
        structured = config.LOG_LEVEL.upper() == "PRODUCTION"
    if colored is None:
        colored = sys.stderr.isatty()

    if structured:
        console_formatter = StructuredFormatter()
    elif colored:
        console_formatter = ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=TIME_FORMAT)
    else:
        console_formatter = logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=TIME_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(console_formatter)
    logger.addHandler(console)

    # Files always get plain text or JSON, never colours
    if config.LOG_FILE:
        file_handler = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
        file_handler.setFormatter(
            StructuredFormatter() if structured else logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT)
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_context_logger(name: str = config.APP_NAME, **context) -> ContextLogger:
    """
    Logger with fields bound to every record

    Example:
        log = get_context_logger(component="api")
        log.info("Fetched song", extra={"song_id": "abc123"})
    """
    return ContextLogger(setup_logger(name), context)


# Global logger
logger = setup_logger()

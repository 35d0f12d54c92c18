"""
Logging configuration for Gantry.

Provides structured logging with:
- Console output with color coding
- Optional JSON format for production
- Log levels configurable via environment
"""

import json
import logging
import sys
from typing import Optional

from gantry.config import get_settings


# ANSI color codes for terminal output
class Colors:
    GREY = "\x1b[38;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"
    GREEN = "\x1b[32;20m"


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GREY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.BOLD_RED,
}

# Record attributes copied into JSON output when a caller passes them via extra=
CONTEXT_FIELDS = ("project_id", "task_id", "alert_id", "job_id")


class ColoredFormatter(logging.Formatter):
    """Console formatter, one color per level."""

    def __init__(self):
        super().__init__(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        self._by_level = {
            level: logging.Formatter(color + LOG_FORMAT + Colors.RESET, datefmt=self.datefmt)
            for level, color in LEVEL_COLORS.items()
        }

    def format(self, record):
        formatter = self._by_level.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_record[name] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Falls back to GANTRY_LOG_LEVEL, then DEBUG/INFO depending on debug.
        json_format: If True, use JSON format (for production).
            Falls back to GANTRY_LOG_JSON.
    """
    settings = get_settings()

    # Determine log level
    log_level = level or settings.log_level or ("DEBUG" if settings.debug else "INFO")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    if json_format is None:
        json_format = settings.log_json

    # Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(JsonFormatter() if json_format else ColoredFormatter())
    root_logger.addHandler(console_handler)

    # Silence noisy loggers
    logging.getLogger("arq").setLevel(logging.INFO)
    logging.getLogger("redis").setLevel(logging.WARNING)

    logging.getLogger("gantry").setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Usage:
        from gantry.logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Something happened")

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    # Prefix with 'gantry' for consistent naming
    if not name.startswith("gantry"):
        name = f"gantry.{name}"
    return logging.getLogger(name)

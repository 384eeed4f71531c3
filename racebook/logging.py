"""
Logging configuration for Racebook.

Provides structured logging where extra fields are appended to each line:

Usage:
    from racebook.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Race added", extra={"race_id": "abc", "track": "Saratoga"})
    logger.error("Store write failed", extra={"key": "races", "error": str(e)})
"""

import logging
import sys
from typing import Optional

from racebook.config import log_level


# Custom formatter that includes extra fields
class StructuredFormatter(logging.Formatter):
    """Formatter that includes extra fields in log output."""

    RESERVED = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "asctime", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in self.RESERVED
        ]

        if extras:
            return f"{base} | {' '.join(extras)}"
        return base


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger.

    Args:
        name: Logger name (usually __name__)
        level: Logging level (defaults to RACEBOOK_LOG_LEVEL)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        level = level if level is not None else log_level()
        logger.setLevel(level)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        # Format: timestamp - level - name - message
        formatter = StructuredFormatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger


class LogContext:
    """
    Context manager for adding context to log messages.

    Usage:
        with LogContext(logger, race_id="abc"):
            logger.info("Predicting")  # Will include race_id=abc
    """

    def __init__(self, logger: logging.Logger, **context):
        self.logger = logger
        self.context = context
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()

        def factory(*args, **kwargs):
            record = self._old_factory(*args, **kwargs)
            for key, value in self.context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._old_factory)
        return False


def log_store_failure(
    logger: logging.Logger,
    operation: str,
    key: str,
    error: Exception,
) -> None:
    """Log a failed read/write against the key-value store."""
    logger.error(
        f"Store failure during {operation}",
        extra={"operation": operation, "key": key, "error": repr(error)},
    )


def log_import_skip(
    logger: logging.Logger,
    name: Optional[str],
    track: Optional[str],
    date: Optional[str],
    reason: str,
) -> None:
    """Log when an incoming race is not imported."""
    logger.debug(
        f"Skipping import of {name} at {track}: {reason}",
        extra={"race": name, "track": track, "date": date},
    )

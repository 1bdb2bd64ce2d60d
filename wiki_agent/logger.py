"""
Logging configuration for the Wiki Agent.

Pipeline components log discrete events through ``log_event``; the event name
and its fields travel in ``extra_fields`` so that ``JsonFormatter`` can emit
them as one JSON object per line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "wiki_agent"


class JsonFormatter(logging.Formatter):
    """
    Formats log records as JSON, merging any structured event fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


_initialized = False


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Attach a stderr handler to the package logger.

    Args:
        level: Log level name
        json_format: Emit JSON lines instead of human-readable text
    """
    global _initialized
    if _initialized:
        return

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    logger.addHandler(handler)
    logger.propagate = False

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance (typically called with __name__).
    """
    return logging.getLogger(name)


def log_event(logger: Optional[logging.Logger], level: int, event: str,
              message: str, **fields: Any) -> None:
    """
    Log a structured pipeline event.

    Args:
        logger: Logger to write to; the package logger when None
        level: logging level, e.g. logging.INFO
        event: Short event name such as "search_stage"
        message: Human-readable message
        **fields: Event payload
    """
    if logger is None:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.log(level, message, extra={"extra_fields": {"event": event, **fields}})

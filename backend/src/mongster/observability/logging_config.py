"""Logging setup for Mongster.

One stdout handler on the root logger, emitting either JSON lines or a
plain text format. Every record is stamped with the current request id; SMTP
sessions run outside any HTTP request and log with "no-request-id".
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Iterable, Optional, TextIO

from .request_id import NO_REQUEST_ID, get_request_id

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"

# Attributes passed through ``extra=`` that are copied into JSON output
CAPTURE_FIELDS = ("peer", "sequence_number", "status_code", "duration_ms")

# aiosmtpd logs every SMTP command on "mail.log"
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "mail.log")


class RequestIDFilter(logging.Filter):
    """Stamp records with the request id bound to the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def __init__(self, extra_fields: Iterable[str] = CAPTURE_FIELDS):
        super().__init__()
        self.extra_fields = tuple(extra_fields)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string.

        Args:
            record: Log record to format

        Returns:
            str: JSON-formatted log line
        """
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data = {
            "timestamp": timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", NO_REQUEST_ID),
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for key in self.extra_fields:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["error"] = str(record.exc_info[1])
            log_data["traceback"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Install the Mongster handler on the root logger.

    Replaces any handlers already present, so calling it twice is safe.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: Emit JSON lines instead of the plain text format
        stream: Output stream (defaults to stdout)
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    handler.addFilter(RequestIDFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

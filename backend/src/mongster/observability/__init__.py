"""Observability module for Mongster.

Provides structured logging, metrics and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    messages_accepted_total,
    messages_cleared_total,
    messages_stored,
    store_errors_total,
    store_operation_duration_seconds,
)
from .request_id import request_id_var, get_request_id, set_request_id, reset_request_id, generate_request_id
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "messages_accepted_total",
    "messages_cleared_total",
    "messages_stored",
    "store_errors_total",
    "store_operation_duration_seconds",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "reset_request_id",
    "generate_request_id",
    # Middleware
    "RequestIDMiddleware",
]

"""Request ID correlation.

The current request id lives in a ContextVar, so every log record emitted
while an HTTP request is handled carries it. SMTP sessions never bind one.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Optional

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Current request id, or "no-request-id" outside a request."""
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> Token:
    """Bind ``request_id`` to the current context.

    Returns:
        Token: Pass to ``reset_request_id`` once the request is done
    """
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)

"""Request correlation middleware.

Binds an ``X-Request-ID`` (taken from the request or generated) for the
duration of each HTTP request and logs one completion line per request.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import generate_request_id, reset_request_id, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Echo or assign a request id and log request completion.

    Request start is logged at DEBUG, completion at INFO.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        token = set_request_id(request_id)
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        logger.debug(f"{route} started")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{route} failed: {e}",
                extra={"duration_ms": _elapsed_ms(started)},
                exc_info=True,
            )
            raise
        else:
            logger.info(
                f"{route} -> {response.status_code}",
                extra={"status_code": response.status_code, "duration_ms": _elapsed_ms(started)},
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            reset_request_id(token)

"""Mongster - FastAPI application factory.

Creates the dashboard/retrieval application bound to an AppContext,
including:
- Message retrieval and clear endpoints
- Server-rendered dashboard page
- Request ID middleware
- Exception handlers mapping store errors to HTTP status codes
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import __version__
from .context import AppContext
from .dashboard.router import router as dashboard_router
from .domain.mail.ports import InvalidRecord, StoreUnavailable
from .inbox.router import router as inbox_router
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router

logger = logging.getLogger(__name__)


def create_app(context: AppContext, manage_acceptor: bool = False) -> FastAPI:
    """Build the FastAPI application.

    Args:
        context: Application context shared with the SMTP acceptor
        manage_acceptor: Start the acceptor on startup and stop it on shutdown

    Returns:
        FastAPI: Configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Mongster starting up...")
        if manage_acceptor:
            context.acceptor.start()

        yield

        logger.info("Mongster shutting down...")
        if manage_acceptor:
            context.acceptor.stop()

    app = FastAPI(
        title="Mongster",
        description="Disposable mail capture dashboard",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    # =========================================================================
    # MIDDLEWARE
    # =========================================================================

    app.add_middleware(RequestIDMiddleware)

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(
        request: Request,
        exc: StoreUnavailable
    ) -> JSONResponse:
        """Map mail store failures to 503.

        The dashboard keeps its last listing and retries on the next poll.
        """
        logger.error(f"Mail store unavailable on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "store_unavailable",
                "message": "The mail store is unavailable. Please try again later.",
            },
        )

    @app.exception_handler(InvalidRecord)
    async def invalid_record_handler(
        request: Request,
        exc: InvalidRecord
    ) -> JSONResponse:
        logger.warning(f"Invalid message record on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "invalid_record",
                "message": str(exc),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle uncaught exceptions.

        Full details are logged but not exposed to the client.
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}",
            exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )

    # =========================================================================
    # ROUTERS
    # =========================================================================

    app.include_router(observability_router)
    app.include_router(inbox_router)
    app.include_router(dashboard_router)

    return app

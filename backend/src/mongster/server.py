"""Mongster server entry point.

Starts the SMTP acceptor and the dashboard HTTP server in one process.

Usage:
    mongster

Environment Variables:
    see mongster.config.Settings
"""

import logging
import sys

import uvicorn

from .config import get_settings
from .context import AppContext
from .main import create_app
from .observability.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Run SMTP capture and the dashboard until interrupted."""
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    logger.info("=== Mongster Starting ===")
    logger.info(f"SMTP Bind: {settings.SMTP_HOST}:{settings.SMTP_PORT}")
    logger.info(f"Dashboard: http://{settings.HTTP_HOST}:{settings.HTTP_PORT}/")

    context = AppContext.from_settings(settings)
    app = create_app(context, manage_acceptor=True)

    try:
        uvicorn.run(
            app,
            host=settings.HTTP_HOST,
            port=settings.HTTP_PORT,
            log_level=settings.LOG_LEVEL.lower(),
            log_config=None,  # keep the handlers installed by configure_logging
        )
    except Exception as e:
        logger.error(f"Mongster failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        context.close()


if __name__ == "__main__":
    main()

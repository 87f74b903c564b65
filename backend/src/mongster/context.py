"""Application context.

Holds the handles shared by the HTTP API and the SMTP acceptor. One context
is created at process start and passed explicitly to ``create_app``.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from .config import Settings
from .database import create_db_engine, create_session_factory, init_schema
from .domain.mail.ports import MailStorePort
from .infrastructure.ingest.acceptor import SmtpAcceptor
from .infrastructure.store.sql_mail_store import SqlMailStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Process-wide wiring shared by the HTTP app and the SMTP acceptor."""
    settings: Settings
    engine: Engine
    store: MailStorePort
    acceptor: SmtpAcceptor

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Create engine, schema, store and (stopped) acceptor.

        Args:
            settings: Application settings

        Returns:
            AppContext: Ready-to-use context; call ``acceptor.start()`` to begin capturing
        """
        engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        init_schema(engine)
        store = SqlMailStore(create_session_factory(engine))
        acceptor = SmtpAcceptor(
            store,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            server_hostname=settings.SMTP_HOSTNAME,
            data_size_limit=settings.SMTP_MAX_SIZE,
            buffer_size=settings.ACCEPTOR_BUFFER_SIZE,
        )
        logger.info(f"Mail store: {settings.DATABASE_URL.split('@')[-1]}")  # Hide credentials
        return cls(settings=settings, engine=engine, store=store, acceptor=acceptor)

    def close(self) -> None:
        """Stop the acceptor and release database connections."""
        self.acceptor.stop()
        self.engine.dispose()

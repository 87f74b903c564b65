"""SMTP acceptor lifecycle.

Wraps an aiosmtpd Controller (which runs the SMTP server on its own event
loop thread) behind start/stop, accepted-message listeners and a clear hook.
"""

import logging
import threading
from collections import deque
from typing import Deque, List, Optional, Tuple

from aiosmtpd.controller import Controller

from ...domain.mail.models import MessageRecord
from ...domain.mail.ports import MailStorePort, RecordId
from .smtp_handler import AcceptedCallback, MessageCaptureHandler

logger = logging.getLogger(__name__)


class SmtpAcceptor:
    """Embedded SMTP endpoint that feeds the mail store.

    The mail store is the only source of truth. When ``buffer_size`` is
    positive the acceptor also keeps the most recently accepted records in a
    bounded in-memory buffer; ``clear()`` resets that buffer and is invoked
    after the store has been cleared.
    """

    def __init__(
        self,
        store: MailStorePort,
        hostname: str = "127.0.0.1",
        port: int = 2525,
        server_hostname: Optional[str] = None,
        data_size_limit: int = 26_214_400,
        buffer_size: int = 0,
        ready_timeout: float = 5.0,
    ):
        self.store = store
        self.hostname = hostname
        self.port = port
        self.server_hostname = server_hostname
        self.data_size_limit = data_size_limit
        self.ready_timeout = ready_timeout

        self.handler = MessageCaptureHandler(store, on_accepted=self._notify)
        self._controller: Optional[Controller] = None
        self._lifecycle_lock = threading.Lock()

        self._listeners: List[AcceptedCallback] = []
        self._buffer: Optional[Deque[Tuple[RecordId, MessageRecord]]] = (
            deque(maxlen=buffer_size) if buffer_size > 0 else None
        )
        self._state_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._controller is not None

    def start(self) -> None:
        """Start listening. No-op if already running."""
        with self._lifecycle_lock:
            if self._controller is not None:
                return

            controller = Controller(
                self.handler,
                hostname=self.hostname,
                port=self.port,
                server_hostname=self.server_hostname,
                ready_timeout=self.ready_timeout,
                data_size_limit=self.data_size_limit,
            )
            controller.start()
            self._controller = controller

        logger.info(f"SMTP acceptor listening on {self.hostname}:{self.port}")

    def stop(self) -> None:
        """Stop listening. No-op if not running."""
        with self._lifecycle_lock:
            controller = self._controller
            if controller is None:
                return
            self._controller = None
            controller.stop()

        logger.info("SMTP acceptor stopped")

    def add_listener(self, callback: AcceptedCallback) -> None:
        """Register a "message accepted" callback ``callback(record_id, record)``.

        Callbacks run on the SMTP event loop thread after the insert has
        completed; a failing callback is logged and does not affect the
        SMTP reply.
        """
        with self._state_lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: AcceptedCallback) -> None:
        with self._state_lock:
            self._listeners.remove(callback)

    def recent(self) -> List[MessageRecord]:
        """Snapshot of the in-memory buffer (empty when buffering is disabled)."""
        with self._state_lock:
            if self._buffer is None:
                return []
            return [record for _, record in self._buffer]

    def clear(self) -> None:
        """Reset acceptor-local state after the store has been cleared."""
        with self._state_lock:
            if self._buffer is not None:
                self._buffer.clear()
        logger.debug("SMTP acceptor buffer cleared")

    def _notify(self, record_id: RecordId, record: MessageRecord) -> None:
        with self._state_lock:
            if self._buffer is not None:
                self._buffer.append((record_id, record))
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(record_id, record)
            except Exception:
                logger.exception(f"Accepted-message listener {listener!r} failed")

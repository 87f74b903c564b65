"""SMTP handler for Mongster mail capture.

Implements the aiosmtpd DATA hook: every completed SMTP transaction is parsed
into a MessageRecord and inserted into the mail store exactly once. Sessions
that are aborted before DATA completes never reach the handler, so no partial
message is ever stored.
"""

import asyncio
import functools
import logging
from typing import Callable, Optional

from aiosmtpd.smtp import Envelope, Session, SMTP

from ...domain.mail.models import MessageRecord
from ...domain.mail.ports import (
    AcceptorFailure,
    InvalidRecord,
    MailStorePort,
    RecordId,
    StoreUnavailable,
)
from ...observability.metrics import messages_accepted_total
from .mime_parser import build_message_record, parse_mime_message

logger = logging.getLogger(__name__)

AcceptedCallback = Callable[[RecordId, MessageRecord], None]


class MessageCaptureHandler:
    """SMTP handler that captures every message into the mail store.

    Reply codes:
    - 250 Message accepted: record stored
    - 554 Transaction failed: content unparseable or missing sender/recipient
      (permanent, the sender should not retry)
    - 451 Requested action aborted: store unavailable (transient, the sender
      may retry)

    Store calls block, so they run in the event loop's default executor and
    one slow insert never stalls other sessions.
    """

    def __init__(
        self,
        store: MailStorePort,
        on_accepted: Optional[AcceptedCallback] = None,
    ):
        """Initialize SMTP handler.

        Args:
            store: Mail store receiving parsed records
            on_accepted: Called with (record_id, record) after each successful insert
        """
        self.store = store
        self.on_accepted = on_accepted

    async def handle_DATA(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
    ) -> str:
        """Handle email DATA command (main SMTP handler entry point).

        Args:
            server: SMTP server instance
            session: SMTP session
            envelope: Email envelope (content, sender, recipients)

        Returns:
            str: SMTP response code and message
        """
        peer = session.peer
        raw = envelope.original_content or envelope.content
        if isinstance(raw, str):
            raw = raw.encode("utf-8", errors="replace")

        logger.debug(
            f"Received message: from={envelope.mail_from}, to={envelope.rcpt_tos}, "
            f"size={len(raw)} bytes",
            extra={"peer": str(peer)},
        )

        try:
            msg = parse_mime_message(raw)
            record = build_message_record(msg, envelope.mail_from, envelope.rcpt_tos)
        except AcceptorFailure as e:
            logger.warning(f"Rejecting unparseable message from {peer}: {e}", extra={"peer": str(peer)})
            messages_accepted_total.labels(status="rejected").inc()
            return '554 Transaction failed: message could not be parsed'

        loop = asyncio.get_running_loop()
        try:
            record_id = await loop.run_in_executor(
                None,
                functools.partial(
                    self.store.insert,
                    record,
                    raw=raw,
                    envelope_sender=envelope.mail_from,
                    envelope_recipients=list(envelope.rcpt_tos),
                ),
            )
        except InvalidRecord as e:
            logger.warning(f"Rejecting invalid message from {peer}: {e}", extra={"peer": str(peer)})
            messages_accepted_total.labels(status="rejected").inc()
            return '554 Transaction failed: missing sender or recipient'
        except StoreUnavailable as e:
            logger.error(f"Mail store unavailable, deferring message from {peer}: {e}", extra={"peer": str(peer)})
            messages_accepted_total.labels(status="deferred").inc()
            return '451 Requested action aborted: local error in processing'

        messages_accepted_total.labels(status="accepted").inc()

        if self.on_accepted is not None:
            self.on_accepted(record_id, record)

        return '250 Message accepted'

"""CapturedMessage model - Persisted form of a captured email.

Each row holds one MessageRecord plus the store-assigned bookkeeping the
record itself does not carry: an opaque id, the receipt sequence number that
defines listing order, the SMTP envelope and the raw message source.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence
from uuid import uuid4

from sqlalchemy import BigInteger, Column, DateTime, Index, LargeBinary, Text, Uuid

from ..domain.mail.models import MessageHeader, MessageRecord
from .base import Base, JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CapturedMessage(Base):
    """
    CapturedMessage model - One row per accepted SMTP transaction.

    sequence_number is the order of receipt since the last clear. It is
    contiguous from 0 and authoritative for ordering; the Date header is
    client-supplied and never used to sort.
    """
    __tablename__ = "captured_message"

    # Primary key (store-assigned, never exposed to dashboard clients)
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    sequence_number = Column(BigInteger, nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Message record fields
    date = Column(Text, nullable=False)
    subject = Column(Text, nullable=True)
    from_address = Column(Text, nullable=False)
    to_addresses = Column(JSONDocument, nullable=False)
    cc_addresses = Column(JSONDocument, nullable=False, default=list)
    reply_to = Column(Text, nullable=True)
    headers = Column(JSONDocument, nullable=False, default=list)
    body = Column(Text, nullable=True)

    # SMTP envelope and raw source
    envelope_sender = Column(Text, nullable=True)
    envelope_recipients = Column(JSONDocument, nullable=True)
    raw_message = Column(LargeBinary, nullable=True)

    __table_args__ = (
        Index('idx_captured_message_sequence', 'sequence_number', unique=True),
    )

    @classmethod
    def from_record(
        cls,
        record: MessageRecord,
        sequence_number: int,
        raw: Optional[bytes] = None,
        envelope_sender: Optional[str] = None,
        envelope_recipients: Optional[Sequence[str]] = None,
    ) -> "CapturedMessage":
        """Build a row from a record.

        Args:
            record: Validated message record
            sequence_number: Store-assigned receipt order
            raw: Raw RFC 822 message bytes
            envelope_sender: SMTP MAIL FROM address
            envelope_recipients: SMTP RCPT TO addresses

        Returns:
            CapturedMessage: Unsaved row
        """
        return cls(
            sequence_number=sequence_number,
            date=record.date,
            subject=record.subject,
            from_address=record.from_,
            to_addresses=list(record.to),
            cc_addresses=list(record.cc),
            reply_to=record.reply_to,
            headers=[header.model_dump() for header in record.headers],
            body=record.body,
            envelope_sender=envelope_sender,
            envelope_recipients=list(envelope_recipients) if envelope_recipients is not None else None,
            raw_message=raw,
        )

    def to_record(self) -> MessageRecord:
        """Rebuild the immutable MessageRecord stored in this row."""
        return MessageRecord(
            date=self.date,
            subject=self.subject,
            to=list(self.to_addresses or []),
            from_=self.from_address,
            cc=list(self.cc_addresses or []),
            reply_to=self.reply_to,
            headers=[MessageHeader.model_validate(header) for header in (self.headers or [])],
            body=self.body,
        )

    def __repr__(self):
        return (
            f"<CapturedMessage(id={self.id}, sequence_number={self.sequence_number}, "
            f"from={self.from_address}, subject={self.subject!r})>"
        )

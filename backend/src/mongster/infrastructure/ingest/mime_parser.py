"""MIME parser for captured email.

Turns raw RFC 822 bytes plus the SMTP envelope into a MessageRecord.
Header values are RFC 2047 decoded; body text is decoded with the charset
declared by its part.
"""

import email
import email.policy
import logging
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import format_datetime, formataddr, getaddresses
from typing import Dict, List, Optional, Sequence

from ...domain.mail.models import HeaderValue, MessageHeader, MessageRecord
from ...domain.mail.ports import AcceptorFailure

logger = logging.getLogger(__name__)

NULL_SENDER = "<>"


def parse_mime_message(raw_mime: bytes) -> EmailMessage:
    """Parse raw MIME bytes into an EmailMessage.

    Args:
        raw_mime: Raw MIME message bytes

    Returns:
        EmailMessage: Parsed MIME message

    Raises:
        AcceptorFailure: If MIME parsing fails
    """
    try:
        return email.message_from_bytes(raw_mime, policy=email.policy.default)
    except Exception as e:
        logger.error(f"Failed to parse MIME message: {e}")
        raise AcceptorFailure(f"Invalid MIME message: {e}") from e


def extract_addresses(msg: EmailMessage, header_name: str) -> List[str]:
    """All addresses of every ``header_name`` header, in order.

    Display names are kept ("Jane <jane@example.com>"); bare addresses stay bare.
    """
    values = [str(value) for value in msg.get_all(header_name, [])]
    addresses = []
    for name, addr in getaddresses(values):
        if addr:
            addresses.append(formataddr((name, addr)))
    return addresses


def extract_headers(msg: EmailMessage) -> List[MessageHeader]:
    """Group headers by name, preserving first-seen order and value order.

    Names are matched case-insensitively; the spelling of the first
    occurrence is kept.
    """
    names: Dict[str, str] = {}
    values: Dict[str, List[HeaderValue]] = {}
    for name, value in msg.items():
        key = name.lower()
        if key not in names:
            names[key] = name
            values[key] = []
        values[key].append(HeaderValue(value=str(value)))
    return [MessageHeader(name=names[key], values=values[key]) for key in names]


def _envelope_sender(mail_from: Optional[str]) -> str:
    """Envelope MAIL FROM, with the null reverse-path (bounces) mapped to ""."""
    if not mail_from or mail_from.strip() == NULL_SENDER:
        return ""
    return mail_from


def extract_body(msg: EmailMessage) -> Optional[str]:
    """Text of the preferred body part (text/plain, then text/html).

    Returns None for header-only messages and messages without a text part.
    """
    part = msg.get_body(preferencelist=("plain", "html"))
    if part is None:
        return None

    try:
        content = part.get_content()
    except (LookupError, UnicodeError) as e:
        # Unknown or lying charset: fall back to a lossy decode
        logger.warning(f"Body charset decode failed ({e}), decoding as UTF-8 with replacement")
        payload = part.get_payload(decode=True) or b""
        content = payload.decode("utf-8", errors="replace")

    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    return content or None


def build_message_record(
    msg: EmailMessage,
    mail_from: Optional[str] = None,
    rcpt_tos: Sequence[str] = (),
) -> MessageRecord:
    """Build a MessageRecord from a parsed message and its SMTP envelope.

    Header addresses win over envelope addresses; the envelope is the
    fallback when a header is missing (e.g. Bcc-only delivery).

    Args:
        msg: Parsed email message
        mail_from: SMTP MAIL FROM address
        rcpt_tos: SMTP RCPT TO addresses

    Returns:
        MessageRecord: Structured record

    Raises:
        AcceptorFailure: If the headers cannot be interpreted
    """
    try:
        senders = extract_addresses(msg, "From")
        recipients = extract_addresses(msg, "To") or [r for r in rcpt_tos if r]
        reply_to = extract_addresses(msg, "Reply-To")

        date = msg.get("Date")
        if not date:
            date = format_datetime(datetime.now(timezone.utc))

        subject = msg.get("Subject")

        return MessageRecord(
            date=str(date),
            subject=str(subject) if subject is not None else None,
            to=recipients,
            from_=senders[0] if senders else _envelope_sender(mail_from),
            cc=extract_addresses(msg, "Cc"),
            reply_to=reply_to[0] if reply_to else None,
            headers=extract_headers(msg),
            body=extract_body(msg),
        )
    except Exception as e:
        logger.error(f"Failed to build message record: {e}")
        raise AcceptorFailure(f"Unreadable message: {e}") from e

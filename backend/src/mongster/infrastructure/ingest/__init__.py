"""SMTP ingest: MIME parsing, the aiosmtpd DATA handler and the acceptor lifecycle."""

from .acceptor import SmtpAcceptor
from .mime_parser import build_message_record, parse_mime_message
from .smtp_handler import MessageCaptureHandler

__all__ = [
    "SmtpAcceptor",
    "MessageCaptureHandler",
    "build_message_record",
    "parse_mime_message",
]

"""Mail capture domain: message records, store port and errors."""

from .models import HeaderValue, MessageHeader, MessageRecord
from .ports import (
    AcceptorFailure,
    InvalidRecord,
    MailCaptureError,
    MailStorePort,
    RecordId,
    StoreUnavailable,
    ensure_valid,
)

__all__ = [
    "HeaderValue",
    "MessageHeader",
    "MessageRecord",
    "AcceptorFailure",
    "InvalidRecord",
    "MailCaptureError",
    "MailStorePort",
    "RecordId",
    "StoreUnavailable",
    "ensure_valid",
]

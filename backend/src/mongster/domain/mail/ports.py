"""Mail capture ports and error taxonomy.

Defines the storage interface the SMTP acceptor and the retrieval API depend
on, and the errors raised across that boundary.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from .models import MessageRecord

RecordId = UUID


class MailCaptureError(Exception):
    """Base exception for mail capture failures."""
    pass


class InvalidRecord(MailCaptureError):
    """Record is missing a required field (sender, recipient or date)."""
    pass


class StoreUnavailable(MailCaptureError):
    """The mail store could not complete an operation (connection or durability failure)."""
    pass


class AcceptorFailure(MailCaptureError):
    """An inbound SMTP transaction could not be turned into a record."""
    pass


def ensure_valid(record: MessageRecord) -> None:
    """Reject records that may not be persisted.

    Args:
        record: Record about to be inserted

    Raises:
        InvalidRecord: If ``from`` is empty, ``to`` has no non-empty entry,
            or ``date`` is empty
    """
    missing = []
    if not record.from_ or not record.from_.strip():
        missing.append("from")
    if not any(address and address.strip() for address in record.to):
        missing.append("to")
    if not record.date or not record.date.strip():
        missing.append("date")

    if missing:
        raise InvalidRecord(f"Message record missing required field(s): {', '.join(missing)}")


class MailStorePort(ABC):
    """Durable, queryable collection of captured messages.

    Implementations serialize insert, list and clear against each other:
    an insert is atomic, a clear removes exactly the records visible to it,
    and a list observes a consistent snapshot in receipt order.
    """

    @abstractmethod
    def insert(
        self,
        record: MessageRecord,
        raw: Optional[bytes] = None,
        envelope_sender: Optional[str] = None,
        envelope_recipients: Optional[Sequence[str]] = None,
    ) -> RecordId:
        """Persist a record and return its store-assigned id.

        Raises:
            InvalidRecord: If the record fails validation
            StoreUnavailable: If the store cannot persist the record
        """
        pass

    @abstractmethod
    def list_all(self) -> List[MessageRecord]:
        """Return every stored record in receipt order.

        Raises:
            StoreUnavailable: If the store cannot be read
        """
        pass

    @abstractmethod
    def clear_all(self) -> int:
        """Remove every stored record and return how many were removed.

        Raises:
            StoreUnavailable: If the store cannot be cleared
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        pass

    @abstractmethod
    def truncate(self, keep: int) -> int:
        """Keep the earliest ``keep`` records, return number removed."""
        pass

    @abstractmethod
    def tail(self, keep: int) -> int:
        """Keep the latest ``keep`` records, return number removed."""
        pass

    @abstractmethod
    def get_raw(self, position: int) -> Optional[bytes]:
        """Raw RFC 822 source of the record at listing ``position``."""
        pass

    @abstractmethod
    def ping(self) -> None:
        """Check connectivity.

        Raises:
            StoreUnavailable: If the store is unreachable
        """
        pass

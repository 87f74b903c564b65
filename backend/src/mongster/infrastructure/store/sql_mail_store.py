"""SQLAlchemy implementation of the mail store.

Every operation runs in its own transaction while holding a process-wide
lock, so inserts, clears and listings never observe each other half-done.
The lock is held only for the duration of a single store call.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Generator, List, Optional, Sequence

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...domain.mail.models import MessageRecord
from ...domain.mail.ports import MailStorePort, RecordId, StoreUnavailable, ensure_valid
from ...models.captured_message import CapturedMessage
from ...observability.metrics import (
    messages_cleared_total,
    messages_stored,
    store_errors_total,
    store_operation_duration_seconds,
)

logger = logging.getLogger(__name__)


class SqlMailStore(MailStorePort):
    """Mail store backed by a relational database.

    Listing order is the store-assigned ``sequence_number`` (receipt order
    since the last clear). Sequence numbers stay contiguous from 0: clear
    restarts them, truncate drops the highest ones and tail renumbers the
    survivors.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize store.

        Args:
            session_factory: Factory producing sessions bound to the store database
        """
        self._session_factory = session_factory
        self._lock = threading.Lock()

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Session, None, None]:
        """Serialized unit of work: commit on success, rollback on error.

        Database errors are re-raised as StoreUnavailable.
        """
        start = time.perf_counter()
        with self._lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                store_errors_total.labels(operation=operation).inc()
                logger.error(f"Mail store {operation} failed: {e}", exc_info=True)
                raise StoreUnavailable(f"Mail store {operation} failed: {e}") from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
                store_operation_duration_seconds.labels(operation=operation).observe(
                    time.perf_counter() - start
                )

    @staticmethod
    def _count(session: Session) -> int:
        return session.execute(
            select(func.count()).select_from(CapturedMessage)
        ).scalar_one()

    def insert(
        self,
        record: MessageRecord,
        raw: Optional[bytes] = None,
        envelope_sender: Optional[str] = None,
        envelope_recipients: Optional[Sequence[str]] = None,
    ) -> RecordId:
        """Persist one captured message.

        Args:
            record: Message record to persist
            raw: Raw RFC 822 source (kept for the raw view)
            envelope_sender: SMTP MAIL FROM address
            envelope_recipients: SMTP RCPT TO addresses

        Returns:
            RecordId: Store-assigned id of the new row

        Raises:
            InvalidRecord: If the record is missing sender, recipient or date
            StoreUnavailable: If the database write fails
        """
        ensure_valid(record)

        with self._transaction("insert") as session:
            last_sequence = session.execute(
                select(func.max(CapturedMessage.sequence_number))
            ).scalar()
            sequence_number = 0 if last_sequence is None else last_sequence + 1

            row = CapturedMessage.from_record(
                record,
                sequence_number=sequence_number,
                raw=raw,
                envelope_sender=envelope_sender,
                envelope_recipients=envelope_recipients,
            )
            session.add(row)
            session.flush()
            record_id = row.id

        messages_stored.set(sequence_number + 1)
        logger.info(
            f"Stored message #{sequence_number}: from={record.from_}, "
            f"to={record.to}, subject={record.subject!r}",
            extra={"sequence_number": sequence_number},
        )
        return record_id

    def list_all(self) -> List[MessageRecord]:
        with self._transaction("list") as session:
            rows = session.execute(
                select(CapturedMessage).order_by(CapturedMessage.sequence_number)
            ).scalars().all()
            return [row.to_record() for row in rows]

    def clear_all(self) -> int:
        """Remove every stored message.

        Returns:
            int: Number of messages removed (0 when already empty)
        """
        with self._transaction("clear") as session:
            cleared = session.execute(delete(CapturedMessage)).rowcount

        messages_stored.set(0)
        messages_cleared_total.inc(cleared)
        logger.info(f"Cleared {cleared} message(s)")
        return cleared

    def count(self) -> int:
        with self._transaction("count") as session:
            return self._count(session)

    def truncate(self, keep: int) -> int:
        """Keep the earliest ``keep`` messages and drop everything after them.

        Args:
            keep: Number of messages to retain

        Returns:
            int: Number of messages removed (0 if already within the limit)
        """
        if keep < 0:
            raise ValueError(f"keep must be >= 0, got {keep}")

        with self._transaction("truncate") as session:
            current = self._count(session)
            if keep >= current:
                return 0
            removed = session.execute(
                delete(CapturedMessage).where(CapturedMessage.sequence_number >= keep)
            ).rowcount

        messages_stored.set(keep)
        messages_cleared_total.inc(removed)
        logger.info(f"Truncated store to {keep} message(s), removed {removed}")
        return removed

    def tail(self, keep: int) -> int:
        """Keep the latest ``keep`` messages and drop the earliest ones.

        Survivors are renumbered so the oldest remaining message becomes
        sequence number 0.

        Args:
            keep: Number of messages to retain

        Returns:
            int: Number of messages removed (0 if already within the limit)
        """
        if keep < 0:
            raise ValueError(f"keep must be >= 0, got {keep}")

        with self._transaction("tail") as session:
            current = self._count(session)
            if keep >= current:
                return 0
            cut = current - keep
            removed = session.execute(
                delete(CapturedMessage).where(CapturedMessage.sequence_number < cut)
            ).rowcount
            # The unique index is checked row by row, so shift through negative
            # values first: no intermediate state may reuse a live number
            for shift in (
                -CapturedMessage.sequence_number - 1,
                -CapturedMessage.sequence_number - 1 - cut,
            ):
                session.execute(
                    update(CapturedMessage)
                    .values(sequence_number=shift)
                    .execution_options(synchronize_session=False)
                )

        messages_stored.set(keep)
        messages_cleared_total.inc(removed)
        logger.info(f"Tailed store to {keep} message(s), removed {removed}")
        return removed

    def get_raw(self, position: int) -> Optional[bytes]:
        with self._transaction("raw") as session:
            return session.execute(
                select(CapturedMessage.raw_message).where(
                    CapturedMessage.sequence_number == position
                )
            ).scalar_one_or_none()

    def ping(self) -> None:
        with self._transaction("ping") as session:
            session.execute(text("SELECT 1"))

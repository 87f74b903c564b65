"""Dashboard poller.

Polls the retrieval API on a fixed interval and keeps the last successfully
fetched listing. Each message is reported as new exactly once: a message
inserted between two polls shows up in the next poll's ``new_messages`` and
is never reported again while it stays in the listing.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx

from ..domain.mail.models import MessageRecord
from .http_client import create_sync_client

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


@dataclass(frozen=True)
class PollResult:
    """Outcome of one successful poll."""
    messages: List[MessageRecord] = field(default_factory=list)
    new_messages: List[MessageRecord] = field(default_factory=list)


def _fingerprint(record: MessageRecord) -> str:
    return record.model_dump_json(by_alias=True)


def diff_new_messages(previous: List[MessageRecord], current: List[MessageRecord]) -> List[MessageRecord]:
    """Messages in ``current`` that were not in ``previous``.

    Identical messages are counted, so a second copy of an already seen
    message is still reported once.
    """
    seen = Counter(_fingerprint(record) for record in previous)
    new = []
    for record in current:
        key = _fingerprint(record)
        if seen[key] > 0:
            seen[key] -= 1
        else:
            new.append(record)
    return new


class DashboardPoller:
    """Periodic, cancellable poller of ``GET /messages.json``.

    A failed poll is logged and leaves the snapshot untouched; the next tick
    retries. ``stop()`` cancels the loop between ticks.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3000",
        interval: float = DEFAULT_POLL_INTERVAL,
        client: Optional[httpx.Client] = None,
        on_update: Optional[Callable[[PollResult], None]] = None,
    ):
        """Initialize poller.

        Args:
            base_url: Dashboard base URL (ignored when ``client`` is given)
            interval: Seconds between polls
            client: Preconfigured httpx client; created from ``base_url`` if omitted
            on_update: Called with every successful PollResult; errors it raises are logged
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.interval = interval
        self._client = client or create_sync_client(base_url)
        self._owns_client = client is None
        self._on_update = on_update

        self._snapshot: List[MessageRecord] = []
        self._snapshot_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_error: Optional[Exception] = None

    @property
    def snapshot(self) -> List[MessageRecord]:
        """Last successfully fetched listing."""
        with self._snapshot_lock:
            return list(self._snapshot)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> PollResult:
        """Fetch the listing once and update the snapshot.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            ValueError: On a malformed payload
        """
        response = self._client.get("/messages.json")
        response.raise_for_status()
        payload = response.json()
        items = payload.get("messages") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ValueError(f"Malformed listing payload: {payload!r:.200}")
        messages = [MessageRecord.model_validate(item) for item in items]

        with self._snapshot_lock:
            new_messages = diff_new_messages(self._snapshot, messages)
            self._snapshot = messages

        self.last_error = None
        result = PollResult(messages=messages, new_messages=new_messages)
        if new_messages:
            logger.info(f"Poll found {len(new_messages)} new message(s), {len(messages)} total")

        if self._on_update is not None:
            try:
                self._on_update(result)
            except Exception:
                logger.exception("Poll update callback failed")
        return result

    def clear(self) -> int:
        """Clear captured mail, then refresh the snapshot.

        Returns:
            int: Number of messages the server removed
        """
        response = self._client.post("/clear")
        response.raise_for_status()
        cleared = response.json()["cleared"]
        self.poll_once()
        return cleared

    def _tick(self) -> None:
        try:
            self.poll_once()
        except (httpx.HTTPError, ValueError) as e:
            self.last_error = e
            logger.warning(f"Poll failed, keeping last listing: {e}")
        except Exception as e:
            # The loop keeps its schedule whatever a single poll raises
            self.last_error = e
            logger.exception(f"Unexpected poll failure, keeping last listing: {e}")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self._tick()
            if self._stop_event.wait(self.interval):
                break

    def start(self) -> None:
        """Poll now and then every ``interval`` seconds in a background thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="dashboard-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the poll loop and wait for the current tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def close(self) -> None:
        self.stop()
        if self._owns_client:
            self._client.close()

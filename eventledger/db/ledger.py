"""Idempotent event ledger keyed by content fingerprint.

The ledger records each fingerprint at most once. A per-fingerprint status
(absent -> processing -> completed | failed) serializes concurrent attempts
for the same content: the duplicate check, the in-flight check and the
claim of the ``processing`` marker happen atomically under one lock, while
the write itself runs outside the lock so unrelated fingerprints never wait
on each other. A failed write leaves the fingerprint ``failed``, which a
later attempt may claim again.
"""

import asyncio
import logging
import threading

from eventledger.db.writer import SimulatedWriter, StorageWriter
from eventledger.exceptions import LedgerCapacityError, StorageError
from eventledger.models.canonical_event import CanonicalEvent
from eventledger.models.enums import ProcessingStatus
from eventledger.models.results import IngestResult

logger = logging.getLogger(__name__)


class EventLedger:
    """Committed events plus their processing-status log."""

    def __init__(self, writer: StorageWriter | None = None, max_events: int | None = None):
        self.writer = writer if writer is not None else SimulatedWriter()
        self.max_events = max_events
        self._lock = threading.Lock()
        self._events: dict[str, CanonicalEvent] = {}
        self._status: dict[str, ProcessingStatus] = {}

    # --- Write path ---

    def ingest(self, event: CanonicalEvent, simulate_failure: bool = False) -> IngestResult:
        """Commit ``event`` unless its fingerprint is already committed or in flight.

        Raises StorageError when the write fails; the fingerprint is left
        ``failed`` and may be retried.
        """
        early = self._claim(event)
        if early is not None:
            return early
        try:
            self.writer.write(event, simulate_failure)
        except StorageError:
            self._mark_failed(event)
            raise
        except Exception as exc:
            self._mark_failed(event)
            raise StorageError(f"Write failed: {exc}", fingerprint=event.fingerprint) from exc
        return self._commit(event)

    async def aingest(self, event: CanonicalEvent, simulate_failure: bool = False) -> IngestResult:
        """Async form of :meth:`ingest`; the write runs in a worker thread."""
        early = self._claim(event)
        if early is not None:
            return early
        try:
            await asyncio.to_thread(self.writer.write, event, simulate_failure)
        except (StorageError, asyncio.CancelledError):
            # Cancellation also releases the processing marker
            self._mark_failed(event)
            raise
        except Exception as exc:
            self._mark_failed(event)
            raise StorageError(f"Write failed: {exc}", fingerprint=event.fingerprint) from exc
        return self._commit(event)

    def _claim(self, event: CanonicalEvent) -> IngestResult | None:
        key = event.fingerprint
        with self._lock:
            stored = self._events.get(key)
            if stored is not None:
                return IngestResult.duplicate_of(stored)
            if self._status.get(key) == ProcessingStatus.PROCESSING:
                return IngestResult.conflict()
            self._status[key] = ProcessingStatus.PROCESSING
        return None

    def _commit(self, event: CanonicalEvent) -> IngestResult:
        key = event.fingerprint
        with self._lock:
            if self.max_events is not None and len(self._events) >= self.max_events:
                self._status[key] = ProcessingStatus.FAILED
                raise LedgerCapacityError(self.max_events, fingerprint=key)
            self._events[key] = event
            self._status[key] = ProcessingStatus.COMPLETED
        logger.debug("Committed %s", key)
        return IngestResult.committed(event)

    def _mark_failed(self, event: CanonicalEvent) -> None:
        with self._lock:
            self._status[event.fingerprint] = ProcessingStatus.FAILED

    # --- Read surface ---

    def get_all(self) -> list[CanonicalEvent]:
        """Snapshot of committed events in commit order."""
        with self._lock:
            return list(self._events.values())

    def get(self, fingerprint: str) -> CanonicalEvent | None:
        with self._lock:
            return self._events.get(fingerprint)

    def status(self, fingerprint: str) -> ProcessingStatus:
        with self._lock:
            return self._status.get(fingerprint, ProcessingStatus.ABSENT)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __contains__(self, fingerprint: object) -> bool:
        with self._lock:
            return fingerprint in self._events

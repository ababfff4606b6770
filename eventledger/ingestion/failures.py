"""Append-only log of raw events that failed normalization or storage."""

import copy
import threading
from collections import deque
from typing import Any

from eventledger.models.canonical_event import FailureRecord
from eventledger.normalization.coercion import format_instant, utc_now


class FailureLog:
    """Thread-safe failure log with optional retention cap.

    With ``max_records=None`` the log grows without bound; otherwise the
    oldest records are dropped once the cap is reached.
    """

    def __init__(self, max_records: int | None = None):
        self.max_records = max_records
        self._lock = threading.Lock()
        self._records: deque[FailureRecord] = deque(maxlen=max_records)
        self.dropped = 0

    def record(self, raw: Any, error: BaseException | str) -> FailureRecord:
        entry = FailureRecord(
            raw=_snapshot(raw),
            error=str(error),
            timestamp=format_instant(utc_now()),
        )
        with self._lock:
            if self.max_records is not None and len(self._records) == self.max_records:
                self.dropped += 1
            self._records.append(entry)
        return entry

    def snapshot(self) -> tuple[FailureRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def _snapshot(raw: Any) -> Any:
    """Deep-copy the raw input so later caller mutation cannot rewrite the log."""
    try:
        return copy.deepcopy(raw)
    except (TypeError, copy.Error):
        return repr(raw)

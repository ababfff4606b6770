"""Storage writers: the (possibly failing, possibly slow) commit step of the ledger."""

import time
from typing import Protocol

from eventledger.exceptions import ConfigError, StorageError
from eventledger.models.canonical_event import CanonicalEvent

DEFAULT_WRITE_DELAY = 0.1
SIMULATED_FAILURE_MESSAGE = "Simulated database write failure"


class StorageWriter(Protocol):
    def write(self, event: CanonicalEvent, simulate_failure: bool) -> None:
        """Persist ``event`` or raise StorageError."""
        ...


class SimulatedWriter:
    """Stands in for a database write: sleeps, then optionally fails."""

    def __init__(self, delay_seconds: float = DEFAULT_WRITE_DELAY):
        if delay_seconds < 0:
            raise ConfigError("write_delay_seconds", "must be >= 0")
        self.delay_seconds = delay_seconds

    def write(self, event: CanonicalEvent, simulate_failure: bool) -> None:
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if simulate_failure:
            raise StorageError(SIMULATED_FAILURE_MESSAGE, fingerprint=event.fingerprint)

"""Shared test fixtures for the event ledger."""

import threading
from datetime import datetime, timezone

import pytest

from eventledger.config import PipelineConfig
from eventledger.db.ledger import EventLedger
from eventledger.db.writer import SimulatedWriter
from eventledger.exceptions import StorageError
from eventledger.ingestion.service import IngestionService
from eventledger.models.canonical_event import CanonicalEvent
from eventledger.normalization.events import EventNormalizer

FIXED_NOW = datetime(2024, 3, 15, 12, 30, 45, 123000, tzinfo=timezone.utc)


class BlockingWriter:
    """Writer that parks inside write() until released, to hold a fingerprint in flight."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def write(self, event: CanonicalEvent, simulate_failure: bool) -> None:
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        if simulate_failure:
            raise StorageError("blocked write failed", fingerprint=event.fingerprint)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def normalizer(fixed_clock) -> EventNormalizer:
    return EventNormalizer(clock=fixed_clock)


@pytest.fixture
def ledger() -> EventLedger:
    return EventLedger(writer=SimulatedWriter(delay_seconds=0))


@pytest.fixture
def service(normalizer: EventNormalizer, ledger: EventLedger) -> IngestionService:
    config = PipelineConfig(write_delay_seconds=0, retry_backoff_seconds=0)
    return IngestionService(normalizer=normalizer, ledger=ledger, config=config)


@pytest.fixture
def sample_raw_event() -> dict:
    return {
        "source": "client_A",
        "payload": {
            "metric": "sale",
            "amount": "1200",
            "timestamp": "2024/01/01",
        },
    }


@pytest.fixture
def sample_event(normalizer: EventNormalizer, sample_raw_event: dict) -> CanonicalEvent:
    return normalizer.normalize(sample_raw_event)


@pytest.fixture
def make_event(normalizer: EventNormalizer):
    """Factory building canonical events from (client, metric, amount, timestamp)."""

    def _make(client: str, metric: str, amount, timestamp: str = "2024-01-01") -> CanonicalEvent:
        return normalizer.normalize({
            "client_id": client,
            "payload": {"metric": metric, "amount": amount, "timestamp": timestamp},
        })

    return _make


@pytest.fixture
def blocking_writer() -> BlockingWriter:
    writer = BlockingWriter()
    yield writer
    writer.release.set()

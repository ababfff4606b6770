"""Idempotent event ingestion: normalize, deduplicate and aggregate events."""

import logging

from eventledger.config import PipelineConfig
from eventledger.db.ledger import EventLedger
from eventledger.engines.aggregator import Aggregator
from eventledger.exceptions import (
    ConfigError,
    IngestionError,
    LedgerCapacityError,
    StorageError,
    ValidationError,
)
from eventledger.ingestion.service import IngestionService
from eventledger.models import (
    AggregateResult,
    CanonicalEvent,
    FailureRecord,
    IngestResult,
    ProcessingStatus,
    QueryFilters,
)
from eventledger.normalization.events import EventNormalizer

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AggregateResult",
    "Aggregator",
    "CanonicalEvent",
    "ConfigError",
    "EventLedger",
    "EventNormalizer",
    "FailureRecord",
    "IngestResult",
    "IngestionError",
    "IngestionService",
    "LedgerCapacityError",
    "PipelineConfig",
    "ProcessingStatus",
    "QueryFilters",
    "StorageError",
    "ValidationError",
]

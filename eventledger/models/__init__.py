"""Data models for the event ledger."""

from eventledger.models.canonical_event import CanonicalEvent, FailureRecord
from eventledger.models.enums import BatchOutcome, ProcessingStatus
from eventledger.models.results import (
    ALREADY_PROCESSING,
    AggregateResult,
    BatchItem,
    BatchReport,
    IngestResult,
    QueryFilters,
    Totals,
)

__all__ = [
    "ALREADY_PROCESSING",
    "AggregateResult",
    "BatchItem",
    "BatchOutcome",
    "BatchReport",
    "CanonicalEvent",
    "FailureRecord",
    "IngestResult",
    "ProcessingStatus",
    "QueryFilters",
    "Totals",
]

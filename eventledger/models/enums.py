"""Enumerations for the event ledger."""

from enum import StrEnum


class ProcessingStatus(StrEnum):
    ABSENT = "absent"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class BatchOutcome(StrEnum):
    COMMITTED = "committed"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    FAILED = "failed"

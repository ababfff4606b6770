"""Result models returned by the ledger, ingestion service and aggregator."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from eventledger.models.canonical_event import CanonicalEvent
from eventledger.models.enums import BatchOutcome

ALREADY_PROCESSING = "already processing"


class IngestResult(BaseModel):
    """Outcome of a single ledger ingest.

    Three shapes are produced:

    * committed: ``accepted=True, duplicate=False, event=<new event>``
    * duplicate: ``accepted=True, duplicate=True, event=<first-committed event>``
    * conflict:  ``accepted=False, error="already processing", retryable=True``
    """

    model_config = ConfigDict(frozen=True)

    accepted: bool
    duplicate: bool = False
    event: CanonicalEvent | None = None
    error: str | None = None
    retryable: bool = False

    @classmethod
    def committed(cls, event: CanonicalEvent) -> "IngestResult":
        return cls(accepted=True, duplicate=False, event=event)

    @classmethod
    def duplicate_of(cls, event: CanonicalEvent) -> "IngestResult":
        return cls(accepted=True, duplicate=True, event=event)

    @classmethod
    def conflict(cls) -> "IngestResult":
        return cls(accepted=False, error=ALREADY_PROCESSING, retryable=True)

    @property
    def is_conflict(self) -> bool:
        return not self.accepted and self.retryable


class QueryFilters(BaseModel):
    """Aggregation filters. A filter left as None does not restrict its axis."""

    client_id: str | None = None
    start_date: str | None = Field(
        default=None, validation_alias=AliasChoices("start_date", "startDate")
    )
    end_date: str | None = Field(
        default=None, validation_alias=AliasChoices("end_date", "endDate")
    )


class Totals(BaseModel):
    count: int = 0
    amount: float = 0.0


class AggregateResult(BaseModel):
    total_count: int = 0
    total_amount: float = 0.0
    by_client: dict[str, Totals] = Field(default_factory=dict)
    by_metric: dict[str, Totals] = Field(default_factory=dict)
    events: list[CanonicalEvent] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "totalAmount": self.total_amount,
            "byClient": {k: v.model_dump() for k, v in self.by_client.items()},
            "byMetric": {k: v.model_dump() for k, v in self.by_metric.items()},
            "events": [e.to_json_dict() for e in self.events],
        }


class BatchItem(BaseModel):
    index: int
    outcome: BatchOutcome
    fingerprint: str | None = None
    error: str | None = None


class BatchReport(BaseModel):
    """Per-record outcomes of a batch ingest."""

    items: list[BatchItem] = Field(default_factory=list)

    def count(self, outcome: BatchOutcome) -> int:
        return sum(1 for item in self.items if item.outcome == outcome)

    @property
    def committed(self) -> int:
        return self.count(BatchOutcome.COMMITTED)

    @property
    def duplicates(self) -> int:
        return self.count(BatchOutcome.DUPLICATE)

    @property
    def conflicts(self) -> int:
        return self.count(BatchOutcome.CONFLICT)

    @property
    def failed(self) -> int:
        return self.count(BatchOutcome.FAILED)

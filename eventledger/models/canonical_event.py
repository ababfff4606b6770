"""Canonical event and failure record models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class CanonicalEvent(BaseModel):
    """An event resolved into the fixed schema. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    metric: str
    amount: float = 0.0
    timestamp: str
    fingerprint: str
    ingested_at: str

    @property
    def date_part(self) -> str:
        return self.timestamp.split("T", 1)[0]

    def to_json_dict(self) -> dict[str, Any]:
        """Interop shape shared with external consumers (UI, log sinks)."""
        return {
            "client_id": self.client_id,
            "metric": self.metric,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "fingerprint": self.fingerprint,
            "ingested_at": self.ingested_at,
        }


class FailureRecord(BaseModel):
    """A raw input that failed normalization or storage, with the reason."""

    model_config = ConfigDict(frozen=True)

    raw: Any
    error: str
    timestamp: str

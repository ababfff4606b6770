"""Event normalization: field resolution, coercion, fingerprinting, validation."""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from eventledger.exceptions import ValidationError
from eventledger.models.canonical_event import CanonicalEvent
from eventledger.normalization.coercion import (
    coerce_amount,
    coerce_timestamp,
    format_instant,
    utc_now,
)
from eventledger.normalization.fingerprint import fingerprint_content

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("client_id", "metric")


class FieldAliases(BaseModel):
    """Ordered source key names accepted for each canonical field.

    ``client_id`` is looked up on the root record; the other fields on the
    nested ``payload`` mapping when present, else on the root record.
    """

    model_config = ConfigDict(frozen=True)

    client_id: tuple[str, ...] = ("source", "client", "client_id", "clientId")
    metric: tuple[str, ...] = ("metric", "type", "event_type", "metricName")
    amount: tuple[str, ...] = ("amount", "value", "total", "sum")
    timestamp: tuple[str, ...] = ("timestamp", "ts", "time", "date", "created_at")


DEFAULT_ALIASES = FieldAliases()


class EventNormalizer:
    """Maps raw events from heterogeneous senders onto CanonicalEvent."""

    def __init__(
        self,
        aliases: FieldAliases = DEFAULT_ALIASES,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.aliases = aliases
        self.clock = clock

    def normalize(self, raw: Any) -> CanonicalEvent:
        """Normalize one raw event. Raises ValidationError on missing fields."""
        if not isinstance(raw, Mapping):
            raise ValidationError(list(REQUIRED_FIELDS))

        now = self.clock()
        payload = raw.get("payload")
        scope = payload if isinstance(payload, Mapping) else raw

        client_id = self._identifier(self.extract_field(raw, self.aliases.client_id))
        metric = self._identifier(self.extract_field(scope, self.aliases.metric))
        amount = coerce_amount(self.extract_field(scope, self.aliases.amount))
        timestamp = coerce_timestamp(self.extract_field(scope, self.aliases.timestamp), now)

        self._validate(client_id=client_id, metric=metric)

        fingerprint = fingerprint_content(client_id, metric, amount, timestamp)
        logger.debug("Normalized %s/%s amount=%s -> %s", client_id, metric, amount, fingerprint)
        return CanonicalEvent(
            client_id=client_id,
            metric=metric,
            amount=amount,
            timestamp=timestamp,
            fingerprint=fingerprint,
            ingested_at=format_instant(now),
        )

    @staticmethod
    def extract_field(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
        """Return the first present, non-null value among ``keys``."""
        for key in keys:
            value = record.get(key)
            if value is not None:
                return value
        return None

    @staticmethod
    def _identifier(value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def _validate(**fields: str | None) -> None:
        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise ValidationError(missing)

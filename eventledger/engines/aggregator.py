"""Aggregation engine: filtered views and grouped totals over committed events."""

from collections.abc import Iterable, Mapping
from typing import Any

from eventledger.db.ledger import EventLedger
from eventledger.models.canonical_event import CanonicalEvent
from eventledger.models.results import AggregateResult, QueryFilters, Totals


class Aggregator:
    """Recomputes aggregates from the ledger snapshot on every query.

    Date bounds are compared lexicographically against the stored ISO
    timestamps. Stored timestamps are always UTC with millisecond precision,
    so string order matches time order; bounds given in another zone or
    precision are compared as plain strings.
    """

    def __init__(self, ledger: EventLedger):
        self.ledger = ledger

    def query(self, filters: QueryFilters | Mapping[str, Any] | None = None) -> AggregateResult:
        """Filter the committed events and total them by client and metric."""
        if filters is None:
            filters = QueryFilters()
        elif not isinstance(filters, QueryFilters):
            filters = QueryFilters.model_validate(dict(filters))
        return aggregate(self.ledger.get_all(), filters)


def matches(event: CanonicalEvent, filters: QueryFilters) -> bool:
    if filters.client_id and event.client_id != filters.client_id:
        return False
    if filters.start_date and event.timestamp < filters.start_date:
        return False
    if filters.end_date and event.timestamp > filters.end_date:
        return False
    return True


def aggregate(events: Iterable[CanonicalEvent], filters: QueryFilters) -> AggregateResult:
    """Single pass over ``events`` producing counts and amount sums."""
    selected: list[CanonicalEvent] = []
    by_client: dict[str, Totals] = {}
    by_metric: dict[str, Totals] = {}
    total_amount = 0.0

    for event in events:
        if not matches(event, filters):
            continue
        selected.append(event)
        for bucket, key in ((by_client, event.client_id), (by_metric, event.metric)):
            totals = bucket.setdefault(key, Totals())
            totals.count += 1
            totals.amount += event.amount
        total_amount += event.amount

    return AggregateResult(
        total_count=len(selected),
        total_amount=total_amount,
        by_client=by_client,
        by_metric=by_metric,
        events=selected,
    )

"""Tests for the aggregation engine."""

import pytest

from eventledger.db.ledger import EventLedger
from eventledger.engines.aggregator import Aggregator
from eventledger.models.results import QueryFilters, Totals


@pytest.fixture
def populated_ledger(ledger: EventLedger, make_event) -> EventLedger:
    ledger.ingest(make_event("A", "sale", 100, "2024-01-01T10:00:00Z"))
    ledger.ingest(make_event("A", "sale", 50, "2024-01-15T10:00:00Z"))
    ledger.ingest(make_event("B", "refund", 30, "2024-02-01T10:00:00Z"))
    return ledger


class TestAggregator:
    def test_unfiltered_totals(self, populated_ledger: EventLedger):
        result = Aggregator(populated_ledger).query({})
        assert result.total_count == 3
        assert result.total_amount == 180
        assert result.by_client["A"] == Totals(count=2, amount=150)
        assert result.by_client["B"] == Totals(count=1, amount=30)
        assert result.by_metric["sale"] == Totals(count=2, amount=150)
        assert result.by_metric["refund"] == Totals(count=1, amount=30)
        assert len(result.events) == 3

    def test_none_filters(self, populated_ledger: EventLedger):
        assert Aggregator(populated_ledger).query(None).total_count == 3

    def test_client_filter(self, populated_ledger: EventLedger):
        result = Aggregator(populated_ledger).query(QueryFilters(client_id="B"))
        assert result.total_count == 1
        assert list(result.by_client) == ["B"]
        assert result.total_amount == 30

    def test_date_range_is_inclusive(self, populated_ledger: EventLedger):
        result = Aggregator(populated_ledger).query({
            "startDate": "2024-01-15T10:00:00.000Z",
            "endDate": "2024-02-01T10:00:00.000Z",
        })
        assert result.total_count == 2
        assert result.total_amount == 80

    def test_date_only_end_bound_is_string_compared(self, populated_ledger: EventLedger):
        result = Aggregator(populated_ledger).query({"end_date": "2024-01-15"})
        # "2024-01-15T10:..." sorts after "2024-01-15"
        assert result.total_count == 1

    def test_combined_filters(self, populated_ledger: EventLedger):
        result = Aggregator(populated_ledger).query(
            QueryFilters(client_id="A", start_date="2024-01-10")
        )
        assert result.total_count == 1
        assert result.total_amount == 50

    def test_no_matches(self, populated_ledger: EventLedger):
        result = Aggregator(populated_ledger).query({"client_id": "Z"})
        assert result.total_count == 0
        assert result.total_amount == 0
        assert result.by_client == {}
        assert result.events == []

    def test_empty_ledger(self, ledger: EventLedger):
        assert Aggregator(ledger).query().total_count == 0

    def test_recomputed_on_every_call(self, populated_ledger: EventLedger, make_event):
        aggregator = Aggregator(populated_ledger)
        assert aggregator.query().total_count == 3
        populated_ledger.ingest(make_event("C", "sale", 1))
        assert aggregator.query().total_count == 4

    def test_query_does_not_mutate_ledger(self, populated_ledger: EventLedger):
        before = populated_ledger.get_all()
        result = Aggregator(populated_ledger).query()
        result.events.clear()
        assert populated_ledger.get_all() == before

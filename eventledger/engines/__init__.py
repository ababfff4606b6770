"""Query engines over the event ledger."""

from eventledger.engines.aggregator import Aggregator, aggregate

__all__ = ["Aggregator", "aggregate"]

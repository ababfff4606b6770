"""Storage layer for the event ledger."""

from eventledger.db.ledger import EventLedger
from eventledger.db.writer import SimulatedWriter, StorageWriter

__all__ = ["EventLedger", "SimulatedWriter", "StorageWriter"]

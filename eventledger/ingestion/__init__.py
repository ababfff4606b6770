"""Ingestion service and failure log."""

from eventledger.ingestion.failures import FailureLog
from eventledger.ingestion.service import IngestionService

__all__ = ["FailureLog", "IngestionService"]

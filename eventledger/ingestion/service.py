"""Ingestion service: the single write entry point of the pipeline.

Raw events are normalized, then committed to the ledger. Every
normalization or storage failure is appended to the failure log before the
error is re-raised to the caller.
"""

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

from eventledger.config import PipelineConfig
from eventledger.db.ledger import EventLedger
from eventledger.db.writer import SimulatedWriter
from eventledger.engines.aggregator import Aggregator
from eventledger.exceptions import ConfigError, StorageError, ValidationError
from eventledger.ingestion.failures import FailureLog
from eventledger.models.canonical_event import FailureRecord
from eventledger.models.enums import BatchOutcome
from eventledger.models.results import (
    AggregateResult,
    BatchItem,
    BatchReport,
    IngestResult,
    QueryFilters,
)
from eventledger.normalization.events import EventNormalizer

logger = logging.getLogger(__name__)


class IngestionService:
    """Orchestrates normalizer -> ledger and exposes query and failure views."""

    def __init__(
        self,
        normalizer: EventNormalizer | None = None,
        ledger: EventLedger | None = None,
        failures: FailureLog | None = None,
        config: PipelineConfig | None = None,
    ):
        self.config = config if config is not None else PipelineConfig()
        self.normalizer = normalizer if normalizer is not None else EventNormalizer()
        if ledger is None:
            ledger = EventLedger(
                writer=SimulatedWriter(self.config.write_delay_seconds),
                max_events=self.config.max_events,
            )
        self.ledger = ledger
        self.failures = failures if failures is not None else FailureLog(self.config.max_failures)
        self.aggregator = Aggregator(self.ledger)

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "IngestionService":
        return cls(config=config)

    # --- Write path ---

    def ingest(self, raw: Any, simulate_failure: bool = False) -> IngestResult:
        """Normalize and commit one raw event.

        Raises ValidationError or StorageError after recording a
        FailureRecord for the attempt.
        """
        try:
            event = self.normalizer.normalize(raw)
            result = self.ledger.ingest(event, simulate_failure)
        except (ValidationError, StorageError) as exc:
            self._record_failure(raw, exc)
            raise
        self._log_result(result)
        return result

    async def aingest(self, raw: Any, simulate_failure: bool = False) -> IngestResult:
        """Async counterpart of :meth:`ingest`."""
        try:
            event = self.normalizer.normalize(raw)
            result = await self.ledger.aingest(event, simulate_failure)
        except (ValidationError, StorageError) as exc:
            self._record_failure(raw, exc)
            raise
        self._log_result(result)
        return result

    def ingest_with_retry(
        self,
        raw: Any,
        max_attempts: int | None = None,
        backoff: float | None = None,
        fail_attempts: int = 0,
    ) -> IngestResult:
        """Ingest with exponential backoff on storage failures and conflicts.

        ``fail_attempts`` simulates a storage failure on that many leading
        attempts. ValidationError is never retried. When attempts run out the
        last StorageError is re-raised, or the last conflict result returned.
        """
        attempts = max_attempts if max_attempts is not None else self.config.retry_attempts
        initial_backoff = backoff if backoff is not None else self.config.retry_backoff_seconds
        if attempts < 1:
            raise ConfigError("max_attempts", "must be >= 1")

        result: IngestResult | None = None
        for attempt in range(attempts):
            try:
                result = self.ingest(raw, simulate_failure=attempt < fail_attempts)
            except StorageError as exc:
                if attempt == attempts - 1:
                    raise
                logger.warning(
                    "Storage write failed (attempt %d/%d): %s", attempt + 1, attempts, exc
                )
            else:
                if not result.is_conflict:
                    return result
                logger.warning(
                    "Fingerprint in flight (attempt %d/%d), backing off", attempt + 1, attempts
                )
            if attempt < attempts - 1:
                time.sleep(initial_backoff * (2 ** attempt))

        assert result is not None
        return result

    def ingest_batch(self, raws: Iterable[Any], simulate_failure: bool = False) -> BatchReport:
        """Ingest many raw events, collecting outcomes instead of stopping on errors."""
        report = BatchReport()
        for index, raw in enumerate(raws):
            try:
                result = self.ingest(raw, simulate_failure)
            except (ValidationError, StorageError) as exc:
                report.items.append(BatchItem(
                    index=index,
                    outcome=BatchOutcome.FAILED,
                    fingerprint=getattr(exc, "fingerprint", None),
                    error=str(exc),
                ))
                continue
            if result.is_conflict:
                outcome = BatchOutcome.CONFLICT
            elif result.duplicate:
                outcome = BatchOutcome.DUPLICATE
            else:
                outcome = BatchOutcome.COMMITTED
            report.items.append(BatchItem(
                index=index,
                outcome=outcome,
                fingerprint=result.event.fingerprint if result.event else None,
                error=result.error,
            ))
        logger.info(
            "Batch ingested: %d committed, %d duplicate, %d conflict, %d failed",
            report.committed, report.duplicates, report.conflicts, report.failed,
        )
        return report

    # --- Read path ---

    def query(self, filters: QueryFilters | Mapping[str, Any] | None = None) -> AggregateResult:
        return self.aggregator.query(filters)

    def get_failed_events(self) -> tuple[FailureRecord, ...]:
        return self.failures.snapshot()

    # --- Helpers ---

    def _record_failure(self, raw: Any, exc: Exception) -> None:
        self.failures.record(raw, exc)
        logger.error("Ingestion failed: %s", exc)

    @staticmethod
    def _log_result(result: IngestResult) -> None:
        if result.is_conflict:
            logger.warning("Event already processing; caller should retry later")
        elif result.event is not None:
            logger.info(
                "%s event %s (%s/%s)",
                "Duplicate" if result.duplicate else "Committed",
                result.event.fingerprint,
                result.event.client_id,
                result.event.metric,
            )

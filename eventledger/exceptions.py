"""Custom exceptions for the event ledger."""


class IngestionError(Exception):
    """Base exception for event ingestion errors."""


class ValidationError(IngestionError):
    """Raised when a raw event cannot be resolved into a canonical event."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        problems = ", ".join(f"Missing {name}" for name in self.missing_fields)
        super().__init__(f"Validation failed: {problems}")


class StorageError(IngestionError):
    """Raised when the ledger write for an event fails."""

    def __init__(self, message: str, fingerprint: str | None = None):
        self.fingerprint = fingerprint
        super().__init__(message)


class LedgerCapacityError(StorageError):
    """Raised when the ledger already holds its configured maximum of events."""

    def __init__(self, max_events: int, fingerprint: str | None = None):
        self.max_events = max_events
        super().__init__(
            f"Ledger capacity reached: {max_events} events already committed",
            fingerprint=fingerprint,
        )


class ConfigError(IngestionError):
    """Raised when a configuration value is invalid."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Config error on '{field}': {message}")


class RawEventFileError(IngestionError):
    """Raised when an input file cannot be read as raw events."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(f"Cannot read events from {file_path}: {message}")

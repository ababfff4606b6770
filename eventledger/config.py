"""Pipeline configuration, read from EVENTLEDGER_* environment variables."""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from eventledger.exceptions import ConfigError

ENV_PREFIX = "EVENTLEDGER_"

# field name -> (env var suffix, parser)
_ENV_FIELDS = {
    "write_delay_seconds": ("WRITE_DELAY", float),
    "max_events": ("MAX_EVENTS", int),
    "max_failures": ("MAX_FAILURES", int),
    "retry_attempts": ("RETRY_ATTEMPTS", int),
    "retry_backoff_seconds": ("RETRY_BACKOFF", float),
}


class PipelineConfig(BaseModel):
    """Runtime knobs for the ingestion pipeline.

    ``max_events`` and ``max_failures`` default to None (unbounded). Capping
    the event ledger rejects new commits once full; capping the failure log
    drops the oldest records.
    """

    write_delay_seconds: float = Field(default=0.1, ge=0)
    max_events: int | None = Field(default=None, ge=1)
    max_failures: int | None = Field(default=None, ge=1)
    retry_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=0.1, ge=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineConfig":
        """Build a config from environment variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for field, (suffix, parse) in _ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + suffix)
            if raw is None or raw.strip() == "":
                continue
            if raw.strip().lower() == "none" and field in ("max_events", "max_failures"):
                values[field] = None
                continue
            try:
                values[field] = parse(raw.strip())
            except ValueError as exc:
                raise ConfigError(field, f"cannot parse {ENV_PREFIX + suffix}={raw!r}") from exc
        return cls.build(**values)

    @classmethod
    def build(cls, **values: object) -> "PipelineConfig":
        """Construct and validate, converting pydantic errors to ConfigError."""
        try:
            config = cls(**values)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "config"
            raise ConfigError(field, first["msg"]) from exc
        return config

"""Typer CLI for the event ledger.

Each invocation builds a fresh in-process pipeline; nothing is kept
between runs.
"""

import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from eventledger.config import PipelineConfig
from eventledger.exceptions import ConfigError, RawEventFileError, StorageError, ValidationError
from eventledger.ingestion.service import IngestionService
from eventledger.models.results import AggregateResult, QueryFilters
from eventledger.normalization.events import EventNormalizer

app = typer.Typer(
    name="eventledger",
    help="Idempotent event ingestion: normalize, deduplicate and aggregate JSON events.",
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline activity to stderr"),
) -> None:
    """Idempotent event ingestion: normalize, deduplicate and aggregate JSON events."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def load_raw_events(paths: list[Path]) -> list[tuple[str, Any]]:
    """Read raw events from JSON files or directories of JSON files.

    Each file holds one JSON object or a list of objects. Returns
    ``(label, raw)`` pairs, labelled ``file.json`` or ``file.json#3``.
    """
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() == ".json"))
        elif path.is_file():
            files.append(path)
        else:
            raise RawEventFileError(str(path), "no such file or directory")

    records: list[tuple[str, Any]] = []
    for file_path in files:
        try:
            data = json.loads(file_path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise RawEventFileError(str(file_path), str(exc)) from exc
        if isinstance(data, dict):
            records.append((file_path.name, data))
        elif isinstance(data, list):
            records.extend((f"{file_path.name}#{i}", item) for i, item in enumerate(data))
        else:
            raise RawEventFileError(str(file_path), "expected a JSON object or a list of objects")
    return records


def _build_config(write_delay: float | None) -> PipelineConfig:
    config = PipelineConfig.from_env()
    if write_delay is not None:
        config = PipelineConfig.build(**{**config.model_dump(), "write_delay_seconds": write_delay})
    return config


def _print_summary(console: Console, aggregates: AggregateResult) -> None:
    console.print(
        f"\n[bold]Events:[/bold] {aggregates.total_count}   "
        f"[bold]Total amount:[/bold] {aggregates.total_amount:,.2f}"
    )
    for title, buckets in (("By client", aggregates.by_client), ("By metric", aggregates.by_metric)):
        if not buckets:
            continue
        table = Table(title=title)
        table.add_column("Key")
        table.add_column("Count", justify="right")
        table.add_column("Amount", justify="right")
        for key, totals in buckets.items():
            table.add_row(key, str(totals.count), f"{totals.amount:,.2f}")
        console.print(table)


@app.command()
def ingest(
    paths: list[Path] = typer.Argument(..., help="JSON files or directories of .json files"),
    simulate_failure: bool = typer.Option(
        False, "--simulate-failure", help="Make every storage write fail (first attempt only with --retry)"
    ),
    retry: bool = typer.Option(False, "--retry", help="Retry storage failures and conflicts with backoff"),
    client: str | None = typer.Option(None, "--client", help="Only aggregate this client_id"),
    start: str | None = typer.Option(None, "--start", help="Inclusive lower bound on timestamp (ISO-8601)"),
    end: str | None = typer.Option(None, "--end", help="Inclusive upper bound on timestamp (ISO-8601)"),
    write_delay: float | None = typer.Option(
        None, "--write-delay", help="Artificial storage delay in seconds (default from EVENTLEDGER_WRITE_DELAY)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit results as JSON"),
) -> None:
    """Ingest raw events and print per-record status and aggregates."""
    try:
        config = _build_config(write_delay)
        records = load_raw_events(paths)
    except (ConfigError, RawEventFileError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    service = IngestionService.from_config(config)
    rows: list[dict[str, Any]] = []

    for label, raw in records:
        try:
            if retry:
                result = service.ingest_with_retry(raw, fail_attempts=1 if simulate_failure else 0)
            else:
                result = service.ingest(raw, simulate_failure)
        except (ValidationError, StorageError) as exc:
            rows.append({"record": label, "status": "failed", "fingerprint": None, "error": str(exc)})
            continue
        if result.is_conflict:
            status = "conflict"
        elif result.duplicate:
            status = "duplicate"
        else:
            status = "committed"
        rows.append({
            "record": label,
            "status": status,
            "fingerprint": result.event.fingerprint if result.event else None,
            "error": result.error,
        })

    aggregates = service.query(QueryFilters(client_id=client, start_date=start, end_date=end))
    failures = service.get_failed_events()

    if as_json:
        typer.echo(json.dumps({
            "results": rows,
            "aggregates": aggregates.to_json_dict(),
            "failures": [f.model_dump() for f in failures],
        }, indent=2, default=str))
    else:
        console = Console()
        table = Table(title="Ingestion results")
        table.add_column("Record")
        table.add_column("Status")
        table.add_column("Fingerprint")
        table.add_column("Error")
        for row in rows:
            table.add_row(row["record"], row["status"], row["fingerprint"] or "--", row["error"] or "")
        console.print(table)
        _print_summary(console, aggregates)
        if failures:
            console.print(f"\n[red]{len(failures)} failure(s) recorded[/red]")

    if any(row["status"] == "failed" for row in rows):
        raise typer.Exit(1)


@app.command()
def normalize(
    path: Path = typer.Argument(..., help="JSON file or directory of .json files"),
) -> None:
    """Print the canonical form of each raw event without storing anything."""
    try:
        records = load_raw_events([path])
    except RawEventFileError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    normalizer = EventNormalizer()
    invalid = 0
    for label, raw in records:
        try:
            event = normalizer.normalize(raw)
        except ValidationError as exc:
            invalid += 1
            typer.echo(f"{label}: {exc}", err=True)
            continue
        typer.echo(json.dumps({"record": label, **event.to_json_dict()}))

    if invalid:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

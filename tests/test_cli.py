"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from eventledger.cli import app, load_raw_events
from eventledger.exceptions import RawEventFileError

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_write_delay(monkeypatch):
    monkeypatch.setenv("EVENTLEDGER_WRITE_DELAY", "0")
    monkeypatch.setenv("EVENTLEDGER_RETRY_BACKOFF", "0")


@pytest.fixture
def events_file(tmp_path: Path) -> Path:
    records = [
        {"source": "A", "payload": {"metric": "sale", "amount": "100", "timestamp": "2024/01/01"}},
        {"client": "A", "payload": {"type": "sale", "value": 100, "ts": "2024-01-01T18:00:00Z"}},
        {"source": "A", "payload": {"metric": "sale", "amount": 50, "timestamp": "2024-01-02"}},
        {"source": "B", "payload": {"metric": "refund", "amount": "30", "timestamp": "2024-01-03"}},
    ]
    path = tmp_path / "events.json"
    path.write_text(json.dumps(records))
    return path


class TestCLI:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "ingest" in result.output

    def test_ingest_help(self):
        result = runner.invoke(app, ["ingest", "--help"])
        assert result.exit_code == 0

    def test_ingest_json_output(self, events_file: Path):
        result = runner.invoke(app, ["ingest", str(events_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [r["status"] for r in data["results"]] == ["committed", "duplicate", "committed", "committed"]
        assert data["aggregates"]["totalCount"] == 3
        assert data["aggregates"]["totalAmount"] == 180
        assert data["aggregates"]["byClient"]["A"] == {"count": 2, "amount": 150}
        assert data["failures"] == []

    def test_ingest_with_client_filter(self, events_file: Path):
        result = runner.invoke(app, ["ingest", str(events_file), "--json", "--client", "B"])
        data = json.loads(result.output)
        assert data["aggregates"]["totalCount"] == 1

    def test_ingest_table_output(self, events_file: Path):
        result = runner.invoke(app, ["ingest", str(events_file)])
        assert result.exit_code == 0
        assert "duplicate" in result.output
        assert "By client" in result.output

    def test_simulated_failure_exits_nonzero(self, events_file: Path):
        result = runner.invoke(app, ["ingest", str(events_file), "--json", "--simulate-failure"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert all(r["status"] == "failed" for r in data["results"])
        assert len(data["failures"]) == 4
        assert data["aggregates"]["totalCount"] == 0

    def test_retry_recovers_from_simulated_failure(self, events_file: Path):
        result = runner.invoke(
            app, ["ingest", str(events_file), "--json", "--simulate-failure", "--retry"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["aggregates"]["totalCount"] == 3
        # The duplicate record is recognised before any write is attempted
        assert len(data["failures"]) == 3

    def test_invalid_record_reported(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"payload": {"amount": 1}}))
        result = runner.invoke(app, ["ingest", str(path), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert "Missing client_id" in data["results"][0]["error"]

    def test_missing_path(self, tmp_path: Path):
        result = runner.invoke(app, ["ingest", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_normalize_prints_canonical_events(self, events_file: Path):
        result = runner.invoke(app, ["normalize", str(events_file)])
        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.output.strip().splitlines()]
        assert len(lines) == 4
        assert lines[0]["fingerprint"] == lines[1]["fingerprint"]
        assert lines[0]["timestamp"] == "2024-01-01T00:00:00.000Z"


class TestLoadRawEvents:
    def test_directory_of_files(self, tmp_path: Path):
        (tmp_path / "a.json").write_text(json.dumps({"source": "A"}))
        (tmp_path / "b.json").write_text(json.dumps([{"source": "B"}, {"source": "C"}]))
        (tmp_path / "notes.txt").write_text("ignored")
        labels = [label for label, _ in load_raw_events([tmp_path])]
        assert labels == ["a.json", "b.json#0", "b.json#1"]

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(RawEventFileError):
            load_raw_events([path])

    def test_scalar_json_rejected(self, tmp_path: Path):
        path = tmp_path / "scalar.json"
        path.write_text("42")
        with pytest.raises(RawEventFileError):
            load_raw_events([path])

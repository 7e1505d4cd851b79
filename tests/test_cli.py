"""Tests for the dealprep CLI."""

import asyncio
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dealprep.cli import app
from dealprep.config import config
from dealprep.normalizer import normalize
from dealprep.runs.ids import make_run_id
from dealprep.runs.lifecycle import RunLifecycle
from dealprep.storage import FileArtifactStore


@pytest.fixture
def runner() -> CliRunner:
    """Provide a CLI test runner."""
    return CliRunner()


@pytest.fixture
def runs_dir(tmp_path, monkeypatch) -> Path:
    """Provide a runs directory backed by the file store, with delivery unconfigured."""
    monkeypatch.setattr(config, "storage", "file")
    monkeypatch.setattr(config.delivery, "sendgrid_api_key", None)
    monkeypatch.setattr(config.delivery, "motion_api_key", None)
    monkeypatch.setattr(config.delivery, "crm_export_dir", None)
    path = tmp_path / "runs"
    path.mkdir()
    return path


@pytest.fixture
def payload_file(tmp_path, raw_payload) -> Path:
    """Write raw_payload to disk."""
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(raw_payload))
    return path


class TestRunIdCommand:
    """Tests for `dealprep run-id`."""

    def test_prints_run_id(self, runner, runs_dir, payload_file, canonical_input):
        """Test the id matches make_run_id for the normalized payload."""
        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "run-id", str(payload_file)])
        assert result.exit_code == 0
        assert result.output.strip() == make_run_id(canonical_input)

    def test_full(self, runner, runs_dir, payload_file):
        """Test --full prints the long form."""
        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "run-id", str(payload_file), "--full"])
        assert result.exit_code == 0
        assert len(result.output.strip()) == len("run_") + 64

    def test_invalid_payload(self, runner, runs_dir, tmp_path):
        """Test an invalid payload exits 1."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"meta": {"trigger_source": "inbound"}}))
        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "run-id", str(bad)])
        assert result.exit_code == 1

    def test_unreadable_file(self, runner, runs_dir, tmp_path):
        """Test malformed JSON exits 1."""
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "run-id", str(bad)])
        assert result.exit_code == 1


class TestValidateCommand:
    """Tests for `dealprep validate`."""

    def test_valid(self, runner, runs_dir, tmp_path, valid_brief):
        """Test a valid brief exits 0."""
        path = tmp_path / "brief.json"
        path.write_text(json.dumps(valid_brief))
        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "validate", str(path)])
        assert result.exit_code == 0
        assert "passed" in result.output

    def test_invalid_json_report(self, runner, runs_dir, tmp_path, valid_brief):
        """Test an invalid brief exits 1 and --json lists the violations."""
        valid_brief["opening_script"] = "x" * 451
        path = tmp_path / "brief.json"
        path.write_text(json.dumps(valid_brief))

        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "validate", str(path), "--json"])

        assert result.exit_code == 1
        report = json.loads(result.stdout)
        assert report["valid"] is False
        assert report["violations"][0]["field"] == "opening_script"

    def test_skip_source_validation(self, runner, runs_dir, tmp_path, valid_brief):
        """Test the evidence rule can be skipped from the command line."""
        del valid_brief["meta"]["source_urls"]
        path = tmp_path / "brief.json"
        path.write_text(json.dumps(valid_brief))

        strict = runner.invoke(app, ["--runs-dir", str(runs_dir), "validate", str(path)])
        relaxed = runner.invoke(
            app, ["--runs-dir", str(runs_dir), "validate", str(path), "--skip-source-validation"]
        )
        assert strict.exit_code == 1
        assert relaxed.exit_code == 0


class TestRunCommands:
    """Tests for run, status and delete."""

    def test_status_missing(self, runner, runs_dir):
        """Test status for an unknown run exits 1."""
        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "status", "run_0000000000000000"])
        assert result.exit_code == 1

    def test_status_and_delete(self, runner, runs_dir, canonical_input):
        """Test an existing run is shown and can be deleted."""
        lifecycle = RunLifecycle(FileArtifactStore(runs_dir))
        run_id = asyncio.run(lifecycle.create_or_resume(canonical_input)).data.run_id

        status = runner.invoke(app, ["--runs-dir", str(runs_dir), "status", run_id])
        assert status.exit_code == 0
        assert json.loads(status.stdout)["status"] == "pending"

        deleted = runner.invoke(app, ["--runs-dir", str(runs_dir), "delete", run_id, "--yes"])
        assert deleted.exit_code == 0
        assert not (runs_dir / run_id).exists()

    def test_delete_single_artifact(self, runner, runs_dir, canonical_input):
        """Test --artifact removes only that artifact."""
        lifecycle = RunLifecycle(FileArtifactStore(runs_dir))
        run_id = asyncio.run(lifecycle.create_or_resume(canonical_input)).data.run_id

        result = runner.invoke(
            app, ["--runs-dir", str(runs_dir), "delete", run_id, "--artifact", "input", "--yes"]
        )
        assert result.exit_code == 0
        assert not (runs_dir / run_id / "input.json").exists()
        assert (runs_dir / run_id / "run_artifact.json").exists()

    def test_delete_declined(self, runner, runs_dir, canonical_input):
        """Test answering no to the prompt keeps the run."""
        lifecycle = RunLifecycle(FileArtifactStore(runs_dir))
        run_id = asyncio.run(lifecycle.create_or_resume(canonical_input)).data.run_id

        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "delete", run_id], input="n\n")
        assert result.exit_code == 1
        assert (runs_dir / run_id / "run_artifact.json").exists()

    def test_run_with_fake_llm_fails_run(self, runner, runs_dir, tmp_path):
        """Test a run whose brief never validates exits 1 and is recorded as failed."""
        payload = {
            "meta": {"trigger_source": "outbound", "submitted_at": "2024-01-15T10:00:00Z"},
            "organization": {"name": "Example Food Bank"},
        }
        path = tmp_path / "payload.json"
        path.write_text(json.dumps(payload))

        result = runner.invoke(app, ["--runs-dir", str(runs_dir), "run", str(path), "--llm", "fake"])
        assert result.exit_code == 1

        canonical = normalize(payload).data
        run_id = make_run_id(canonical)
        record = json.loads((runs_dir / run_id / "run_artifact.json").read_text())
        assert record["status"] == "failed"
        assert record["errors"][0].startswith("BRIEF_INVALID")

"""Tests for CLI commands."""
import json

import pytest
from typer.testing import CliRunner

from cli import app
from config.settings import get_settings


runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSingleCommand:
    def test_seeded_trial(self):
        result = runner.invoke(app, ["single", "--seed", "cli", "--max-rounds", "500"])
        assert result.exit_code == 0
        assert "Trial #0" in result.output
        assert "Capital Trace" in result.output

    def test_unbounded_round_cap(self):
        result = runner.invoke(app, ["single", "--unbounded", "--max-rounds", "5", "--seed", "u"])
        assert result.exit_code == 0
        assert "round_capped" in result.output

    def test_invalid_config_exit_code(self):
        result = runner.invoke(app, ["single", "--target-capital", "5"])
        assert result.exit_code == 2
        assert "target_capital" in result.output


class TestBatchCommand:
    def test_batch_with_exports(self, tmp_path):
        csv_path = tmp_path / "runs.csv"
        report_path = tmp_path / "report.json"

        result = runner.invoke(
            app,
            [
                "batch",
                "--runs", "200",
                "--seed", "cli-batch",
                "--csv", str(csv_path),
                "--report", str(report_path),
            ],
        )

        assert result.exit_code == 0
        assert "Batch Summary" in result.output
        assert "Risk Metrics" in result.output
        assert len(csv_path.read_text().strip().splitlines()) == 201

        report = json.loads(report_path.read_text())
        assert report["summary"]["total_runs"] == 200
        assert report["statistics"]["total_runs"] == 200
        assert report["config"]["seed"] == "cli-batch"

    def test_batch_from_config_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "initial_capital": 10,
                    "target_capital": 20,
                    "bet_size": 1,
                    "win_prob": 0.0,
                    "runs": 50,
                    "strategy": {"kind": "proportional", "proportion": 0.5},
                }
            )
        )
        report_path = tmp_path / "report.json"

        result = runner.invoke(
            app, ["batch", "--config", str(config_path), "--proportion", "0.2", "--report", str(report_path)]
        )

        assert result.exit_code == 0
        report = json.loads(report_path.read_text())
        assert report["config"]["proportion"] == 0.2
        assert report["summary"]["bankrupt_count"] == 50

    def test_batch_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["batch", "--config", str(tmp_path / "absent.json")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestTimelineCommand:
    def test_timeline(self):
        result = runner.invoke(app, ["timeline", "--runs", "50", "--seed", "t", "--every", "10"])
        assert result.exit_code == 0
        assert "Timeline" in result.output


class TestValidateCommand:
    def test_valid(self):
        result = runner.invoke(app, ["validate"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_lists_every_error(self):
        result = runner.invoke(app, ["validate", "--target-capital", "5", "--bet-size", "50"])
        assert result.exit_code == 2
        assert "target_capital" in result.output
        assert "bet_size" in result.output

    def test_field_error(self):
        result = runner.invoke(app, ["validate", "--win-prob", "1.5"])
        assert result.exit_code == 2
        assert "win_prob" in result.output

    def test_unexpected_failure_exit_code(self, monkeypatch):
        def broken(config):
            raise RuntimeError("boom")

        monkeypatch.setattr("cli.validate_config", broken)
        result = runner.invoke(app, ["validate"])
        assert result.exit_code == 1
        assert "Validation failed: boom" in result.output


class TestWorkersOption:
    def test_zero_workers_rejected(self):
        result = runner.invoke(app, ["batch", "--runs", "10", "--workers", "0"])
        assert result.exit_code == 2

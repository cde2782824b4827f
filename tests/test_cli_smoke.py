"""
Minimal smoke tests for the hellweek-coach CLI.

Tests basic functionality:
- App runs and lists workouts
- A simulated session lands in history and the progress log
- Entries can be logged, updated and deleted
- Analytics commands render
"""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hellweek_coach.cli.main import app


runner = CliRunner()


@pytest.fixture
def data_dir():
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _log(data_dir: Path, *args: str):
    return runner.invoke(app, ["log", "--data-dir", str(data_dir), *args])


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Hell Week" in result.output

    def test_templates(self):
        result = runner.invoke(app, ["templates", "--json"])
        assert result.exit_code == 0
        ids = [t["id"] for t in json.loads(result.output)]
        assert "endurance-test" in ids
        assert "cold-water-training" in ids

    def test_run_unknown_template(self, data_dir):
        result = runner.invoke(app, ["run", "nope", "--simulate", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "Unknown workout template" in result.output

    def test_simulated_run_records_session(self, data_dir):
        """A simulated run is saved to history and logged as a workout."""
        result = runner.invoke(
            app, ["run", "cold-water-training", "--simulate", "--data-dir", str(data_dir)]
        )
        assert result.exit_code == 0
        assert "Session completed" in result.output
        assert (data_dir / "workout_history.json").exists()

        result = runner.invoke(app, ["history", "--json", "--data-dir", str(data_dir)])
        records = json.loads(result.output)
        assert len(records) == 1
        assert records[0]["workout_id"] == "cold-water-training"
        assert records[0]["completed_count"] == 6

        result = runner.invoke(app, ["entries", "--json", "--data-dir", str(data_dir)])
        entries = json.loads(result.output)
        assert entries[0]["activity"] == "Cold Water Training"
        assert entries[0]["type"] == "workout"

        result = runner.invoke(app, ["stats", "--json", "--data-dir", str(data_dir)])
        assert json.loads(result.output)["total_sessions"] == 1

    def test_log_entry(self, data_dir):
        result = _log(
            data_dir,
            "--type", "workout",
            "--activity", "4-Mile Run",
            "--date", "2026-03-10",
            "--week", "1",
            "--day", "2",
            "--distance", "4",
            "--duration", "32",
        )
        assert result.exit_code == 0
        assert "Logged workout" in result.output
        assert "First Workout" in result.output
        assert "personal record" in result.output

        result = runner.invoke(app, ["entries", "--week", "1", "--json", "--data-dir", str(data_dir)])
        entries = json.loads(result.output)
        assert entries[0]["distance"] == 4

    def test_log_rejects_bad_input(self, data_dir):
        result = _log(data_dir, "--type", "workout", "--activity", "Run", "--date", "03/10/2026")
        assert result.exit_code == 1
        result = _log(data_dir, "--type", "recovery", "--activity", "Check-in", "--mood", "11")
        assert result.exit_code == 1

    def test_update_and_delete_entry(self, data_dir):
        _log(data_dir, "--type", "nutrition", "--activity", "Lunch", "--calories", "700", "--json")
        entries = json.loads(
            runner.invoke(app, ["entries", "--json", "--data-dir", str(data_dir)]).output
        )
        entry_id = entries[0]["id"]

        result = runner.invoke(
            app, ["update-entry", entry_id[:8], "--calories", "850", "--data-dir", str(data_dir)]
        )
        assert result.exit_code == 0
        entries = json.loads(
            runner.invoke(app, ["entries", "--json", "--data-dir", str(data_dir)]).output
        )
        assert entries[0]["calories"] == 850

        result = runner.invoke(
            app, ["delete-entry", entry_id, "--force", "--data-dir", str(data_dir)]
        )
        assert result.exit_code == 0
        entries = json.loads(
            runner.invoke(app, ["entries", "--json", "--data-dir", str(data_dir)]).output
        )
        assert entries == []

    def test_delete_unknown_entry(self, data_dir):
        result = runner.invoke(app, ["delete-entry", "zzz", "--force", "--data-dir", str(data_dir)])
        assert result.exit_code == 1

    def test_start_date(self, data_dir):
        result = runner.invoke(app, ["start-date", "2026-03-02", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        result = runner.invoke(app, ["start-date", "--data-dir", str(data_dir)])
        assert "2026-03-02" in result.output

    def test_analytics_commands(self, data_dir):
        """Analytics commands run on a small log."""
        _log(data_dir, "--type", "workout", "--activity", "Swim", "--distance", "1", "--week", "1")
        _log(data_dir, "--type", "recovery", "--activity", "Check-in", "--sleep", "6", "--week", "1")

        result = runner.invoke(app, ["rollup", "1", "--json", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        rollup = json.loads(result.output)
        assert rollup["total_workouts"] == 1
        assert rollup["goals"]["miles"] == 25

        for command in ("streaks", "trends", "achievements", "records", "summary", "report"):
            result = runner.invoke(app, [command, "--data-dir", str(data_dir)])
            assert result.exit_code == 0, command

        result = runner.invoke(app, ["summary", "--json", "--data-dir", str(data_dir)])
        assert json.loads(result.output)["recommendations"]

    def test_report_rejects_zero_days(self, data_dir):
        result = runner.invoke(app, ["report", "--days", "0", "--data-dir", str(data_dir)])
        assert result.exit_code == 1

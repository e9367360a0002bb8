"""Tests for the command line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from badminton_elo import __version__
from badminton_elo.cli import app

CONFIGS_DIR = Path(__file__).parent.parent / "configs"
SEASON = str(CONFIGS_DIR / "season.yaml")
SYSTEMS = str(CONFIGS_DIR / "rating_systems.yaml")


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """Tests for CLI commands."""

    def test_version(self, runner):
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_systems(self, runner):
        """Test the built-in systems are listed."""
        result = runner.invoke(app, ["systems"])
        assert result.exit_code == 0
        assert "fifa" in result.output
        assert "standard" in result.output

    def test_systems_with_file(self, runner):
        """Test custom systems are listed next to the built-ins."""
        result = runner.invoke(app, ["systems", "--systems-file", SYSTEMS])
        assert result.exit_code == 0
        assert "club" in result.output

    def test_process(self, runner):
        """Test rating a single match."""
        result = runner.invoke(app, ["process", SEASON, "--match", "m3", "--system", "fifa"])
        assert result.exit_code == 0
        assert "m3" in result.output

    def test_process_unknown_system(self, runner):
        """Test an unknown system exits with an error."""
        result = runner.invoke(app, ["process", SEASON, "--system", "nope"])
        assert result.exit_code == 1
        assert "Unknown rating system" in result.output

    def test_process_unknown_match(self, runner):
        """Test an unknown match id exits with an error."""
        result = runner.invoke(app, ["process", SEASON, "--match", "m99"])
        assert result.exit_code == 1

    def test_compare(self, runner):
        """Test comparing every system on one match."""
        result = runner.invoke(app, ["compare", SEASON, "--match", "m4"])
        assert result.exit_code == 0
        assert "aggressive" in result.output

    def test_replay_writes_outputs(self, runner, tmp_path):
        """Test a doubles replay writes the report and history."""
        report = tmp_path / "standings.md"
        history = tmp_path / "history.csv"
        result = runner.invoke(
            app,
            [
                "replay",
                SEASON,
                "--side-size",
                "2",
                "--report",
                str(report),
                "--history",
                str(history),
            ],
        )
        assert result.exit_code == 0
        assert report.read_text().startswith("# Standings (standard)")
        assert history.exists()

    def test_replay_missing_file(self, runner, tmp_path):
        """Test a missing log exits with an error."""
        result = runner.invoke(app, ["replay", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_recommend(self, runner):
        """Test recommendations run on the example season."""
        result = runner.invoke(app, ["recommend", SEASON])
        assert result.exit_code == 0

    def test_validate(self, runner):
        """Test validating the example season."""
        result = runner.invoke(app, ["validate", SEASON, "--systems-file", SYSTEMS])
        assert result.exit_code == 0
        assert "valid" in result.output

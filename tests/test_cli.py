"""Tests for CLI commands."""

from pathlib import Path
from tempfile import TemporaryDirectory

from typer.testing import CliRunner

from pulseflow.cli import app

runner = CliRunner()


def _config(tmpdir: str) -> Path:
    path = Path(tmpdir) / "config.yaml"
    path.write_text(f"paths:\n  data_dir: {Path(tmpdir) / 'data'}\n", encoding="utf-8")
    return path


def test_add_and_list_signals() -> None:
    """Test signals added from the CLI are listed."""
    with TemporaryDirectory() as tmpdir:
        config = str(_config(tmpdir))

        added = runner.invoke(app, ["-c", config, "add-signal", "Blog", "https://a.com/feed", "--interval", "15"])
        listed = runner.invoke(app, ["-c", config, "list-signals"])

    assert added.exit_code == 0
    assert "Signal created" in added.stdout
    assert listed.exit_code == 0
    assert "Blog [AUTO, active]" in listed.stdout
    assert "every 15 min, last scraped: never" in listed.stdout


def test_add_signal_rejects_bad_interval() -> None:
    """Test invalid signals exit non-zero."""
    with TemporaryDirectory() as tmpdir:
        result = runner.invoke(
            app, ["-c", str(_config(tmpdir)), "add-signal", "Blog", "https://a.com/", "--interval", "0"]
        )

    assert result.exit_code == 1
    assert "Interval must be at least one minute" in result.stdout


def test_add_destination_validates_format() -> None:
    """Test malformed destinations are refused before storing."""
    with TemporaryDirectory() as tmpdir:
        result = runner.invoke(
            app, ["-c", str(_config(tmpdir)), "add-destination", "s1", "EMAIL", "not-an-email"]
        )

    assert result.exit_code == 1
    assert "Invalid email destination: not-an-email" in result.stdout


def test_add_destination_unknown_signal() -> None:
    """Test destinations for unknown signals are refused."""
    with TemporaryDirectory() as tmpdir:
        result = runner.invoke(
            app, ["-c", str(_config(tmpdir)), "add-destination", "ghost", "WEBHOOK", "https://h.example/"]
        )

    assert result.exit_code == 1
    assert "Signal not found: ghost" in result.stdout


def test_run_unknown_signal() -> None:
    """Test running a missing signal exits non-zero."""
    with TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, ["-c", str(_config(tmpdir)), "run", "ghost", "--dry-run"])

    assert result.exit_code == 1
    assert "Signal not found: ghost" in result.stdout


def test_scrape_dry_run() -> None:
    """Test a dry-run scrape resolves the strategy without fetching."""
    with TemporaryDirectory() as tmpdir:
        result = runner.invoke(
            app, ["-c", str(_config(tmpdir)), "scrape", "https://www.reddit.com/r/python", "--dry-run"]
        )

    assert result.exit_code == 0
    assert "(REDDIT)" in result.stdout
    assert "[DRY RUN] nothing fetched" in result.stdout

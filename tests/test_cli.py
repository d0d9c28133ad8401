"""Tests for the docket command line."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from docket import __version__
from docket.cli import cli
from docket.models import RunReport


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """Create a CliRunner working in an empty directory."""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


class TestCli:
    """Tests for the command group."""

    def test_version(self, runner: CliRunner) -> None:
        """Test the version option."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        """Test that every command is listed."""
        result = runner.invoke(cli, ["--help"])

        for command in ("plugindocs", "versioned", "placeholder"):
            assert command in result.output


class TestPlugindocs:
    """Tests for the plugindocs command."""

    def test_invalid_report(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that an unreadable plugin report is rejected."""
        report = tmp_path / "plugins.json"
        report.write_text("not json")

        result = runner.invoke(cli, ["plugindocs", str(report), "--output-path", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid plugin report" in result.output

    def test_missing_settings_file(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that a named settings file that does not exist aborts the run."""
        report = tmp_path / "plugins.json"
        report.write_text('{"successful": {}}')

        result = runner.invoke(
            cli,
            ["plugindocs", str(report), "--output-path", str(tmp_path),
             "--settings", str(tmp_path / "missing.yml")],
        )

        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_nothing_written(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test the message when no document changed."""
        report = tmp_path / "plugins.json"
        report.write_text('{"successful": {}}')

        with patch("docket.cli.PluginDocsPipeline") as pipeline:
            pipeline.return_value.run.return_value = RunReport()
            result = runner.invoke(
                cli, ["plugindocs", str(report), "--output-path", str(tmp_path)]
            )

        assert result.exit_code == 0
        assert "Nothing to do" in result.output


class TestPlaceholder:
    """Tests for the placeholder command."""

    def test_unsupported_type(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that only integrations get placeholders."""
        result = runner.invoke(
            cli,
            ["placeholder", "--output-path", str(tmp_path), "--plugin-type", "input",
             "--plugin-name", "aws"],
        )

        assert result.exit_code == 1
        assert "input is not supported" in result.output

    def test_dry_run(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test writing a placeholder without publishing it."""
        publisher = MagicMock()
        with patch("docket.cli.DocsPublisher", return_value=publisher):
            result = runner.invoke(
                cli,
                ["placeholder", "--output-path", str(tmp_path), "--plugin-type", "integration",
                 "--plugin-name", "aws", "--dry-run"],
            )

        assert result.exit_code == 0
        index = tmp_path / "logstash-docs/docs/versioned-plugins/integrations/aws-index.asciidoc"
        assert index.exists()
        publisher.clone.assert_called_once()
        publisher.publish.assert_not_called()

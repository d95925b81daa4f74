"""Tests for the root flexrunner CLI."""

from click.testing import CliRunner

from flexrunner import __version__
from flexrunner.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "organize delivery packages" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_all_commands_registered() -> None:
    expected = {
        "status",
        "summary",
        "select",
        "toggle",
        "deselect",
        "clear-selection",
        "assign",
        "remove",
        "start",
        "back",
        "deliver",
        "undeliver",
        "reset-progress",
        "undo",
        "reset",
        "range",
        "theme",
        "export",
        "import",
        "guide",
        "shell",
    }
    assert set(cli.commands) == expected


# --- Global flags ---


def test_json_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--json", "--version"])
    assert result.exit_code == 0


def test_quiet_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-q", "--version"])
    assert result.exit_code == 0

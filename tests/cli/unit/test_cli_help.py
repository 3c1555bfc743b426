"""CLI smoke tests."""

from click.testing import CliRunner
from factorio_test_runner.cli import cli


def test_cli_displays_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "generate-config" in result.output
    assert "run" in result.output


def test_run_help_lists_configuration_options() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["run", "-h"])

    assert result.exit_code == 0
    assert "--config" in result.output
    assert "--log-file" in result.output
    assert "--verbose" in result.output

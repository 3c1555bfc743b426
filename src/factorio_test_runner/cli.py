"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys

import click

from factorio_test_runner.configuration import (
    DEFAULT_CONFIG_FILENAME,
    write_placeholder_configuration,
)
from factorio_test_runner.run_execution import (
    ExitCode,
    RunExecutionError,
    RunRequest,
    execute_suite_run,
)

_LOGGER = logging.getLogger(__name__)


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="factorio-test-runner")
def cli() -> None:
    """Run a mod's in-game test suite on a headless Factorio server."""


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML run configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML run configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="run")
@click.option(
    "--config",
    "config_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON run configuration file",
)
@click.option(
    "--log-file",
    "log_path",
    required=False,
    type=click.Path(path_type=str),
    help="Override the server output log file from the configuration",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Log launch commands, state changes and cleanup details.",
)
@click.pass_context
def run_tests(ctx: click.Context, config_path: str, log_path: str | None, verbose: bool) -> None:
    """Launch the server, trigger the test suite and report its results."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
        )
    click.echo("Factorio mod tests\n")
    try:
        outcome = execute_suite_run(RunRequest(config_path=config_path, log_path=log_path))
    except RunExecutionError as exc:
        raise CliError(f"Test runner error: {exc}") from exc
    if outcome.exit_code is not ExitCode.SUCCESS:
        ctx.exit(int(outcome.exit_code))


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        exit_code = cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    except Exception as exc:  # pylint: disable=broad-exception-caught
        _LOGGER.debug("Unhandled error", exc_info=True)
        click.echo(f"Test runner error: {exc}", err=True)
        return 1
    return exit_code if isinstance(exit_code, int) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

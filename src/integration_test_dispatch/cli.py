"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from integration_test_dispatch.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_settings,
    write_placeholder_configuration,
)
from integration_test_dispatch.dispatch_inputs import (
    DEFAULT_BRANCH,
    DEFAULT_FORK,
    DEFAULT_TEST_FILE,
    DEFAULT_WORKING_DIRECTORY,
    DispatchInputError,
    build_dispatch_inputs,
    working_directory_choices,
)
from integration_test_dispatch.process_execution import format_command
from integration_test_dispatch.run_execution import (
    RunExecutionError,
    RunOutcome,
    RunRequest,
    execute_integration_test_dispatch,
    plan_integration_test_dispatch,
)
from integration_test_dispatch.test_execution import TestRunError

DEFAULT_WORKSPACE = "dispatch-workspace"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="integration-test-dispatch")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Manually dispatched integration test runner for langchain-aws packages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FORMAT,
        stream=sys.stderr,
    )


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML dispatch configuration to write",
)
def generate_config(output_path: str) -> None:
    """Generate a YAML dispatch configuration holding the defaults."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="run")
@click.option(
    "--working-directory",
    "working_directory",
    type=click.Choice(working_directory_choices()),
    default=DEFAULT_WORKING_DIRECTORY.value,
    show_default=True,
    help="Package of the monorepo to test",
)
@click.option(
    "--fork",
    default=DEFAULT_FORK,
    show_default=True,
    help="Which fork to run this test against",
)
@click.option(
    "--branch",
    default=DEFAULT_BRANCH,
    show_default=True,
    help="Which branch to run this test against",
)
@click.option(
    "--test-file",
    "test_file",
    default=DEFAULT_TEST_FILE,
    show_default=True,
    help="Which test file to run (glob relative to the working directory)",
)
@click.option(
    "--workspace",
    default=DEFAULT_WORKSPACE,
    show_default=True,
    type=click.Path(path_type=str, file_okay=False),
    help="Directory receiving the checkout and the Poetry tool environment",
)
@click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Optional YAML/JSON dispatch configuration file",
)
@click.option(
    "--report",
    "report_path",
    required=False,
    type=click.Path(path_type=str, dir_okay=False),
    help="Optional path of an .xlsx run report",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the steps and commands without running them.",
)
# pylint: disable=too-many-arguments
def run_dispatch(
    working_directory: str,
    fork: str,
    branch: str,
    test_file: str,
    workspace: str,
    config_path: str | None,
    report_path: str | None,
    dry_run: bool,
) -> None:
    """Check out a fork/branch, install it, run its integration tests and verify the tree."""
    try:
        inputs = build_dispatch_inputs(
            working_directory=working_directory,
            fork=fork,
            branch=branch,
            test_file=test_file,
        )
    except DispatchInputError as exc:
        raise click.BadParameter(str(exc), param_hint="--working-directory") from exc
    request = RunRequest(
        inputs=inputs,
        workspace=Path(workspace).resolve(),
        config_path=config_path,
        report_path=report_path,
    )

    if dry_run:
        _echo_plan(request)
        return

    try:
        outcome = execute_integration_test_dispatch(request)
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    _echo_outcome(outcome)
    failed_step = outcome.failed_step
    if failed_step is not None and outcome.failure_kind is not None:
        raise CliError(
            f"Dispatch failed at {failed_step.step.value} "
            f"({outcome.failure_kind.value}): {failed_step.detail}"
        )


def _echo_plan(request: RunRequest) -> None:
    try:
        settings = load_settings(request.config_path)
        plan = plan_integration_test_dispatch(request, settings)
    except (ConfigurationError, TestRunError) as exc:
        raise CliError(str(exc)) from exc
    for planned in plan:
        click.echo(f"[{planned.step.value}] {planned.description}")
        for command in planned.commands:
            click.echo(f"  $ {format_command(command)}")


def _echo_outcome(outcome: RunOutcome) -> None:
    for step in outcome.steps:
        click.echo(f"{step.step.value}: {step.status.value}")
    click.echo("PASSED" if outcome.succeeded else "FAILED")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

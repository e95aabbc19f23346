"""Checkout of the requested fork and branch."""

from __future__ import annotations

import logging
from pathlib import Path

from integration_test_dispatch.configuration.runtime_settings import RepositorySettings
from integration_test_dispatch.dispatch_inputs import DispatchInputs
from integration_test_dispatch.process_execution import (
    CommandLaunchError,
    CommandRunner,
    format_command,
)

logger = logging.getLogger(__name__)


class SourceAcquisitionError(Exception):
    """Raised when the fork or branch cannot be checked out."""


def build_clone_command(
    inputs: DispatchInputs, repository: RepositorySettings, destination: Path
) -> tuple[str, ...]:
    """Build the shallow single-branch clone command for the dispatch inputs."""
    return (
        "git",
        "clone",
        "--depth",
        str(repository.clone_depth),
        "--branch",
        inputs.branch,
        "--single-branch",
        repository.clone_url(inputs.fork),
        str(destination),
    )


def acquire_source(
    inputs: DispatchInputs,
    repository: RepositorySettings,
    destination: Path,
    run_command: CommandRunner,
) -> Path:
    """Clone `<fork>/<repository>` at the requested branch into `destination`.

    Raises:
      SourceAcquisitionError: If the destination is already populated or
        unusable, or the clone fails (unknown fork, unknown branch, network
        error).
    """
    try:
        populated = destination.exists() and any(destination.iterdir())
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SourceAcquisitionError(
            f"Cannot prepare checkout destination {destination}: {exc}"
        ) from exc
    if populated:
        raise SourceAcquisitionError(f"Checkout destination is not empty: {destination}")

    command = build_clone_command(inputs, repository, destination)
    try:
        result = run_command(command, destination.parent)
    except CommandLaunchError as exc:
        raise SourceAcquisitionError(str(exc)) from exc
    if not result.succeeded:
        raise SourceAcquisitionError(
            f"Checkout of {inputs.fork}/{repository.name}@{inputs.branch} failed "
            f"with exit code {result.returncode}: {format_command(command)}"
        )
    logger.info("Checked out %s/%s@%s", inputs.fork, repository.name, inputs.branch)
    return destination

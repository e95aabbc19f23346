"""Resolution of user supplied dispatch inputs."""

from __future__ import annotations

from .dispatch_models import (
    DEFAULT_BRANCH,
    DEFAULT_FORK,
    DEFAULT_TEST_FILE,
    DEFAULT_WORKING_DIRECTORY,
    DispatchInputs,
    WorkingDirectory,
)


class DispatchInputError(ValueError):
    """Raised when a dispatch input is outside its accepted values."""


def working_directory_choices() -> tuple[str, ...]:
    """Return the accepted working directories in declaration order."""
    return tuple(member.value for member in WorkingDirectory)


def build_dispatch_inputs(
    *,
    working_directory: WorkingDirectory | str | None = None,
    fork: str | None = None,
    branch: str | None = None,
    test_file: str | None = None,
) -> DispatchInputs:
    """Build dispatch inputs, filling every omitted value with its default.

    Only the working directory is checked. Fork, branch and test file are
    trusted as given; a bad value fails later at checkout or collection.
    """
    return DispatchInputs(
        working_directory=_resolve_working_directory(working_directory),
        fork=_free_form(fork, DEFAULT_FORK),
        branch=_free_form(branch, DEFAULT_BRANCH),
        test_file=_free_form(test_file, DEFAULT_TEST_FILE),
    )


def _resolve_working_directory(value: WorkingDirectory | str | None) -> WorkingDirectory:
    if value is None:
        return DEFAULT_WORKING_DIRECTORY
    if isinstance(value, WorkingDirectory):
        return value
    normalized = value.strip()
    if not normalized:
        return DEFAULT_WORKING_DIRECTORY
    try:
        return WorkingDirectory(normalized)
    except ValueError as exc:
        choices = ", ".join(working_directory_choices())
        raise DispatchInputError(
            f"working-directory '{value}' is not one of: {choices}"
        ) from exc


def _free_form(value: str | None, default: str) -> str:
    if value is None:
        return default
    stripped = value.strip()
    return stripped or default

"""Integration test invocation through `poetry run pytest`."""

from __future__ import annotations

import glob
import logging
import shlex
from collections.abc import Mapping, Sequence
from pathlib import Path

from integration_test_dispatch.configuration.runtime_settings import TestRunSettings
from integration_test_dispatch.process_execution import (
    CommandLaunchError,
    CommandRunner,
    format_command,
)

logger = logging.getLogger(__name__)

_GLOB_CHARACTERS = "*?["


class TestRunError(Exception):
    """Raised when the test runner exits with a non-zero status."""

    __test__ = False

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def split_test_file_argument(test_file: str) -> tuple[str, ...]:
    """Split the test-file value into words the way a shell would."""
    try:
        return tuple(shlex.split(test_file))
    except ValueError as exc:
        raise TestRunError(f"Cannot parse test file argument {test_file!r}: {exc}") from exc


def expand_test_file_pattern(test_file: str, package_dir: Path) -> tuple[str, ...]:
    """Expand each word of the test-file value relative to the package directory.

    Words may be paths, globs, node ids or pytest options. A word that
    matches no file is passed through unchanged so pytest handles it.
    """
    arguments: list[str] = []
    for word in split_test_file_argument(test_file):
        matches = sorted(glob.glob(word, root_dir=package_dir, recursive=True))
        if matches:
            arguments.extend(matches)
            continue
        if any(character in word for character in _GLOB_CHARACTERS):
            logger.warning("Test file pattern matched nothing: %s", word)
        arguments.append(word)
    return tuple(arguments)


def build_pytest_command(
    test_paths: Sequence[str],
    test_run: TestRunSettings,
    poetry_executable: Path | str = "poetry",
) -> tuple[str, ...]:
    """Build `poetry run pytest` with each test argument passed as its own word."""
    return (str(poetry_executable), "run", "pytest", *test_run.pytest_args, *test_paths)


def run_integration_tests(
    *,
    package_dir: Path,
    test_file: str,
    test_run: TestRunSettings,
    environment: Mapping[str, str],
    run_command: CommandRunner,
    poetry_executable: Path | str = "poetry",
) -> int:
    """Run the selected tests once with output streamed to the console."""
    test_paths = expand_test_file_pattern(test_file, package_dir)
    command = build_pytest_command(test_paths, test_run, poetry_executable)
    try:
        result = run_command(command, package_dir, env=environment)
    except CommandLaunchError as exc:
        raise TestRunError(str(exc)) from exc
    if not result.succeeded:
        raise TestRunError(
            f"Integration tests failed with exit code {result.returncode}: "
            f"{format_command(command)}",
            exit_code=result.returncode,
        )
    return result.returncode

"""Tests for external command invocation."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from integration_test_dispatch.process_execution import (
    CommandLaunchError,
    CommandNotFoundError,
    format_command,
    run_command,
)


def test_run_command_captures_stdout_when_requested(tmp_path: Path) -> None:
    result = run_command(
        (sys.executable, "-c", "import os; print(os.getcwd())"),
        tmp_path,
        capture_output=True,
    )

    assert result.succeeded
    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


def test_run_command_reports_non_zero_exit_without_raising(tmp_path: Path) -> None:
    result = run_command((sys.executable, "-c", "raise SystemExit(3)"), tmp_path)

    assert result.returncode == 3
    assert not result.succeeded
    assert result.stdout == ""


def test_run_command_passes_the_given_environment(tmp_path: Path) -> None:
    result = run_command(
        (sys.executable, "-c", "import os; print(os.environ.get('DISPATCH_MARKER', ''))"),
        tmp_path,
        env={"DISPATCH_MARKER": "present"},
        capture_output=True,
    )

    assert result.stdout.strip() == "present"


def test_run_command_raises_for_unknown_executable(tmp_path: Path) -> None:
    with pytest.raises(CommandNotFoundError, match="definitely-not-a-real-binary"):
        run_command(("definitely-not-a-real-binary", "--version"), tmp_path)


def test_format_command_quotes_glob_arguments() -> None:
    command = ("poetry", "run", "pytest", "tests/integration_tests/**/test*.py")

    assert format_command(command) == "poetry run pytest 'tests/integration_tests/**/test*.py'"


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permission bits")
def test_run_command_wraps_non_executable_file(tmp_path: Path) -> None:
    script = tmp_path / "not-executable.sh"
    script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    script.chmod(0o644)

    with pytest.raises(CommandLaunchError, match="Cannot run") as exc_info:
        run_command((str(script),), tmp_path)
    assert not isinstance(exc_info.value, CommandNotFoundError)

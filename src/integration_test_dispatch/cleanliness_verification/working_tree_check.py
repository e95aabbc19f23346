"""Check that a test run left no changes behind in the checkout."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from integration_test_dispatch.configuration.runtime_settings import CleanlinessSettings
from integration_test_dispatch.process_execution import CommandLaunchError, CommandRunner

logger = logging.getLogger(__name__)

GIT_STATUS_COMMAND = ("git", "status")


class DirtyWorkspaceError(Exception):
    """Raised when the working tree differs from the checked out revision."""

    def __init__(self, message: str, status_text: str = "") -> None:
        super().__init__(message)
        self.status_text = status_text


def is_clean_status(status_text: str, marker: str) -> bool:
    return any(marker in line for line in status_text.splitlines())


def verify_clean_working_tree(
    checkout_dir: Path,
    cleanliness: CleanlinessSettings,
    run_command: CommandRunner,
    base_env: Mapping[str, str] | None = None,
) -> str:
    """Run `git status` and require the clean-tree marker in its output.

    Untracked files count as changes. Returns the status text on success.
    """
    environment = dict(os.environ if base_env is None else base_env)
    # git localizes the marker text otherwise.
    environment["LC_ALL"] = "C"
    try:
        result = run_command(GIT_STATUS_COMMAND, checkout_dir, env=environment, capture_output=True)
    except CommandLaunchError as exc:
        raise DirtyWorkspaceError(str(exc)) from exc

    status_text = result.stdout
    for line in status_text.rstrip("\n").splitlines():
        logger.info("git status: %s", line)
    if not result.succeeded:
        raise DirtyWorkspaceError(
            f"git status failed with exit code {result.returncode}", status_text=status_text
        )
    if not is_clean_status(status_text, cleanliness.clean_marker):
        raise DirtyWorkspaceError(
            "Tests left changes in the working tree "
            f"(expected '{cleanliness.clean_marker}').",
            status_text=status_text,
        )
    return status_text

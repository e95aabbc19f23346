"""External command invocation used by every pipeline step."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class CommandLaunchError(Exception):
    """Raised when a command cannot be started at all."""


class CommandNotFoundError(CommandLaunchError):
    """Raised when the executable of a command cannot be found."""


@dataclass(frozen=True)
class CommandResult:
    """Exit status and optional captured stdout of one command."""

    command: tuple[str, ...]
    returncode: int
    stdout: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):  # pylint: disable=too-few-public-methods
    """Callable that runs one command in a directory."""

    def __call__(
        self,
        command: tuple[str, ...],
        cwd: Path,
        *,
        env: Mapping[str, str] | None = None,
        capture_output: bool = False,
    ) -> CommandResult: ...


def format_command(command: Sequence[str]) -> str:
    """Render a command the way a shell would accept it."""
    return shlex.join(command)


def run_command(
    command: tuple[str, ...],
    cwd: Path,
    *,
    env: Mapping[str, str] | None = None,
    capture_output: bool = False,
) -> CommandResult:
    """Run one command and return its exit status without raising on failure.

    Output streams straight to the parent's stdout/stderr unless
    ``capture_output`` is set, in which case stdout is captured as text and
    stderr still streams.
    """
    logger.info("$ %s  (cwd=%s)", format_command(command), cwd)
    try:
        completed = subprocess.run(
            list(command),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            check=False,
            stdout=subprocess.PIPE if capture_output else None,
            text=True,
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(f"Command not found: {format_command(command)}") from exc
    except OSError as exc:
        raise CommandLaunchError(f"Cannot run {format_command(command)}: {exc}") from exc
    return CommandResult(
        command=tuple(command),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
    )

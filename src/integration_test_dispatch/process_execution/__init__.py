"""Process execution domain exports."""

from .command_runner import (
    CommandLaunchError,
    CommandNotFoundError,
    CommandResult,
    CommandRunner,
    format_command,
    run_command,
)

__all__ = [
    "CommandLaunchError",
    "CommandNotFoundError",
    "CommandResult",
    "CommandRunner",
    "format_command",
    "run_command",
]

"""Interpreter and Poetry provisioning for the package under test."""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from integration_test_dispatch.configuration.runtime_settings import (
    InstallSettings,
    ToolchainSettings,
)
from integration_test_dispatch.process_execution import (
    CommandLaunchError,
    CommandRunner,
    format_command,
)

logger = logging.getLogger(__name__)

ExecutableLookup = Callable[[str], str | None]

# Poetry installs into an activated virtualenv instead of its own when these are set.
_ACTIVE_ENVIRONMENT_VARIABLES = ("VIRTUAL_ENV", "POETRY_ACTIVE")


class ProvisioningError(Exception):
    """Raised when the interpreter, Poetry or the dependencies cannot be installed."""


@dataclass(frozen=True)
class ProvisionedEnvironment:
    """Executables prepared for the test run."""

    interpreter: Path
    poetry_executable: Path


def tools_environment_dir(tools_dir: Path, toolchain: ToolchainSettings) -> Path:
    """Return the virtual environment that holds the pinned Poetry release."""
    return tools_dir / f"poetry-{toolchain.poetry_version}"


def tools_poetry_executable(tools_dir: Path, toolchain: ToolchainSettings) -> Path:
    return _venv_executable(tools_environment_dir(tools_dir, toolchain), "poetry")


def build_poetry_bootstrap_commands(
    interpreter: Path | str, toolchain: ToolchainSettings, tools_dir: Path
) -> tuple[tuple[str, ...], ...]:
    """Build the commands that install the pinned Poetry into its own virtual environment."""
    venv_dir = tools_environment_dir(tools_dir, toolchain)
    return (
        (str(interpreter), "-m", "venv", str(venv_dir)),
        (
            str(_venv_executable(venv_dir, "python")),
            "-m",
            "pip",
            "install",
            f"poetry=={toolchain.poetry_version}",
        ),
    )


def without_active_environment(base_env: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of `base_env` that does not point Poetry at an active virtualenv."""
    return {
        key: value
        for key, value in base_env.items()
        if key not in _ACTIVE_ENVIRONMENT_VARIABLES
    }


def build_env_use_command(
    interpreter: Path | str, poetry_executable: Path | str = "poetry"
) -> tuple[str, ...]:
    return (str(poetry_executable), "env", "use", str(interpreter))


def build_install_command(
    install: InstallSettings, poetry_executable: Path | str = "poetry"
) -> tuple[str, ...]:
    """Build `poetry install`, adding `--with` for the configured dependency groups."""
    command: tuple[str, ...] = (str(poetry_executable), "install")
    if install.groups:
        command += ("--with", ",".join(install.groups))
    return command


# pylint: disable=too-many-arguments
def provision_environment(
    *,
    package_dir: Path,
    toolchain: ToolchainSettings,
    install: InstallSettings,
    tools_dir: Path,
    run_command: CommandRunner,
    which: ExecutableLookup = shutil.which,
    base_env: Mapping[str, str] | None = None,
) -> ProvisionedEnvironment:
    """Resolve the pinned interpreter, install pinned Poetry and the package dependencies.

    Poetry is installed into its own virtual environment under `tools_dir`,
    which must live outside the checkout so the working tree stays untouched.
    Every command runs without the caller's active virtualenv.
    """
    if not package_dir.is_dir():
        raise ProvisioningError(f"Working directory not found in checkout: {package_dir}")

    environment = without_active_environment(os.environ if base_env is None else base_env)
    interpreter = _resolve_interpreter(toolchain, which)
    poetry_executable = _ensure_poetry(interpreter, toolchain, tools_dir, run_command, environment)

    _run_step(
        build_env_use_command(interpreter, poetry_executable), package_dir, run_command, environment
    )
    _run_step(
        build_install_command(install, poetry_executable), package_dir, run_command, environment
    )
    logger.info(
        "Provisioned Python %s with Poetry %s in %s",
        toolchain.python_version,
        toolchain.poetry_version,
        package_dir,
    )
    return ProvisionedEnvironment(interpreter=interpreter, poetry_executable=poetry_executable)


def _resolve_interpreter(toolchain: ToolchainSettings, which: ExecutableLookup) -> Path:
    executable_name = f"python{toolchain.python_version}"
    found = which(executable_name)
    if found is None:
        raise ProvisioningError(f"Python {toolchain.python_version} not found on PATH.")
    return Path(found)


def _ensure_poetry(
    interpreter: Path,
    toolchain: ToolchainSettings,
    tools_dir: Path,
    run_command: CommandRunner,
    environment: Mapping[str, str],
) -> Path:
    venv_dir = tools_environment_dir(tools_dir, toolchain)
    poetry_executable = tools_poetry_executable(tools_dir, toolchain)
    if poetry_executable.exists():
        logger.debug("Reusing Poetry %s from %s", toolchain.poetry_version, venv_dir)
        return poetry_executable

    try:
        venv_dir.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ProvisioningError(f"Cannot create tool directory {venv_dir.parent}: {exc}") from exc
    for command in build_poetry_bootstrap_commands(interpreter, toolchain, tools_dir):
        _run_step(command, venv_dir.parent, run_command, environment)
    return poetry_executable


def _run_step(
    command: tuple[str, ...],
    cwd: Path,
    run_command: CommandRunner,
    environment: Mapping[str, str],
) -> None:
    try:
        result = run_command(command, cwd, env=environment)
    except CommandLaunchError as exc:
        raise ProvisioningError(str(exc)) from exc
    if not result.succeeded:
        raise ProvisioningError(
            f"Provisioning command failed with exit code {result.returncode}: "
            f"{format_command(command)}"
        )


def _venv_executable(venv_dir: Path, name: str) -> Path:
    if sys.platform.startswith("win"):
        return venv_dir / "Scripts" / f"{name}.exe"
    return venv_dir / "bin" / name

"""Environment provisioning domain exports."""

from .poetry_environment import (
    ExecutableLookup,
    ProvisionedEnvironment,
    ProvisioningError,
    build_env_use_command,
    build_install_command,
    build_poetry_bootstrap_commands,
    provision_environment,
    tools_environment_dir,
    tools_poetry_executable,
    without_active_environment,
)

__all__ = [
    "ExecutableLookup",
    "ProvisionedEnvironment",
    "ProvisioningError",
    "build_env_use_command",
    "build_install_command",
    "build_poetry_bootstrap_commands",
    "provision_environment",
    "tools_environment_dir",
    "tools_poetry_executable",
    "without_active_environment",
]

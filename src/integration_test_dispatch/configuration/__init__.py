"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_settings
from .runtime_settings import (
    CleanlinessSettings,
    CredentialSettings,
    DispatchSettings,
    InstallSettings,
    RepositorySettings,
    TestRunSettings,
    ToolchainSettings,
)

__all__ = [
    "CleanlinessSettings",
    "CredentialSettings",
    "DispatchSettings",
    "InstallSettings",
    "RepositorySettings",
    "TestRunSettings",
    "ToolchainSettings",
    "ConfigurationError",
    "load_settings",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]

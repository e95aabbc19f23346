"""Configuration loader service."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    CleanlinessSettings,
    CredentialSettings,
    DispatchSettings,
    InstallSettings,
    RepositorySettings,
    TestRunSettings,
    ToolchainSettings,
)

PYTHON_VERSION_ENV = "DISPATCH_PYTHON_VERSION"
POETRY_VERSION_ENV = "DISPATCH_POETRY_VERSION"


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_settings(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> DispatchSettings:
    """Load settings from an optional YAML/JSON file and environment overrides.

    Without a file every section takes its defaults. ``DISPATCH_PYTHON_VERSION``
    and ``DISPATCH_POETRY_VERSION`` in the environment take precedence over the
    file.
    """
    environment = os.environ if environ is None else environ
    path = Path(config_path) if config_path is not None else None
    parsed = _read_config_file(path) if path is not None else {}

    toolchain = _apply_toolchain_overrides(
        _parse_toolchain_section(parsed.get("toolchain")), environment
    )
    return DispatchSettings(
        path=path,
        repository=_parse_repository_section(parsed.get("repository")),
        toolchain=toolchain,
        install=_parse_install_section(parsed.get("install")),
        credentials=_parse_credentials_section(parsed.get("credentials")),
        test_run=_parse_test_run_section(parsed.get("test_run")),
        cleanliness=_parse_cleanliness_section(parsed.get("cleanliness")),
    )


def _read_config_file(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to read configuration file {path}: {exc}") from exc
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")
    return parsed


def _parse_repository_section(value: Any) -> RepositorySettings:
    section = _optional_mapping(value, "repository")
    defaults = RepositorySettings()
    name = _string_or_default(section.get("name"), "repository.name", defaults.name)
    url_template = _string_or_default(
        section.get("url_template"), "repository.url_template", defaults.url_template
    )
    if "{fork}" not in url_template:
        raise ConfigurationError("repository.url_template must contain '{fork}'.")
    try:
        url_template.format(fork="fork", repository=name)
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigurationError(
            f"repository.url_template has an unsupported placeholder: {exc}"
        ) from exc
    clone_depth = _require_positive_int(
        section.get("clone_depth", defaults.clone_depth), "repository.clone_depth"
    )
    return RepositorySettings(name=name, url_template=url_template, clone_depth=clone_depth)


def _parse_toolchain_section(value: Any) -> ToolchainSettings:
    section = _optional_mapping(value, "toolchain")
    defaults = ToolchainSettings()
    return ToolchainSettings(
        python_version=_version_or_default(
            section.get("python_version"), "toolchain.python_version", defaults.python_version
        ),
        poetry_version=_version_or_default(
            section.get("poetry_version"), "toolchain.poetry_version", defaults.poetry_version
        ),
    )


def _apply_toolchain_overrides(
    toolchain: ToolchainSettings, environ: Mapping[str, str]
) -> ToolchainSettings:
    python_version = environ.get(PYTHON_VERSION_ENV, "").strip() or toolchain.python_version
    poetry_version = environ.get(POETRY_VERSION_ENV, "").strip() or toolchain.poetry_version
    return ToolchainSettings(python_version=python_version, poetry_version=poetry_version)


def _parse_install_section(value: Any) -> InstallSettings:
    section = _optional_mapping(value, "install")
    if "groups" not in section:
        return InstallSettings()
    return InstallSettings(groups=_normalize_string_sequence(section["groups"], "install.groups"))


def _parse_credentials_section(value: Any) -> CredentialSettings:
    section = _optional_mapping(value, "credentials")
    defaults = CredentialSettings()
    return CredentialSettings(
        access_key_id_secret=_string_or_default(
            section.get("access_key_id_secret"),
            "credentials.access_key_id_secret",
            defaults.access_key_id_secret,
        ),
        secret_access_key_secret=_string_or_default(
            section.get("secret_access_key_secret"),
            "credentials.secret_access_key_secret",
            defaults.secret_access_key_secret,
        ),
        region_secret=_string_or_default(
            section.get("region_secret"), "credentials.region_secret", defaults.region_secret
        ),
    )


def _parse_test_run_section(value: Any) -> TestRunSettings:
    section = _optional_mapping(value, "test_run")
    if "pytest_args" not in section:
        return TestRunSettings()
    return TestRunSettings(
        pytest_args=_normalize_string_sequence(section["pytest_args"], "test_run.pytest_args")
    )


def _parse_cleanliness_section(value: Any) -> CleanlinessSettings:
    section = _optional_mapping(value, "cleanliness")
    defaults = CleanlinessSettings()
    return CleanlinessSettings(
        clean_marker=_string_or_default(
            section.get("clean_marker"), "cleanliness.clean_marker", defaults.clean_marker
        )
    )


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _string_or_default(value: Any, field_name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _version_or_default(value: Any, field_name: str, default: str) -> str:
    # YAML reads an unquoted 3.11 as a float.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return _string_or_default(value, field_name, default)


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if isinstance(value, str):
        items: Sequence[Any] = value.split(",")
    elif isinstance(value, Sequence):
        items = value
    else:
        raise ConfigurationError(f"{field_name} must be a string or list of strings.")
    normalized = []
    for item in items:
        if not isinstance(item, str):
            raise ConfigurationError(f"{field_name} entries must be strings.")
        stripped = item.strip()
        if stripped:
            normalized.append(stripped)
    return tuple(normalized)


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value

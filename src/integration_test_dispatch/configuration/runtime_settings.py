"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_REPOSITORY_NAME = "langchain-aws"
DEFAULT_URL_TEMPLATE = "https://github.com/{fork}/{repository}.git"
DEFAULT_PYTHON_VERSION = "3.11"
DEFAULT_POETRY_VERSION = "1.7.1"
DEFAULT_INSTALL_GROUPS = ("test", "test_integration")
DEFAULT_PYTEST_ARGS = ("-vv", "-s")
CLEAN_WORKING_TREE_MARKER = "nothing to commit, working tree clean"


@dataclass(frozen=True)
class RepositorySettings:
    """Where the repository under test is cloned from."""

    name: str = DEFAULT_REPOSITORY_NAME
    url_template: str = DEFAULT_URL_TEMPLATE
    clone_depth: int = 1

    def clone_url(self, fork: str) -> str:
        return self.url_template.format(fork=fork, repository=self.name)


@dataclass(frozen=True)
class ToolchainSettings:
    """Pinned interpreter and package-manager versions."""

    python_version: str = DEFAULT_PYTHON_VERSION
    poetry_version: str = DEFAULT_POETRY_VERSION


@dataclass(frozen=True)
class InstallSettings:
    """Poetry dependency groups installed next to the main dependencies."""

    groups: tuple[str, ...] = DEFAULT_INSTALL_GROUPS


@dataclass(frozen=True)
class CredentialSettings:
    """Names of the secrets holding the AWS credential triple."""

    access_key_id_secret: str = "AWS_ACCESS_KEY_ID"
    secret_access_key_secret: str = "AWS_SECRET_ACCESS_KEY"
    region_secret: str = "AWS_REGION"


@dataclass(frozen=True)
class TestRunSettings:
    """Arguments passed to pytest ahead of the test paths."""

    __test__ = False

    pytest_args: tuple[str, ...] = DEFAULT_PYTEST_ARGS


@dataclass(frozen=True)
class CleanlinessSettings:
    """Text that `git status` prints for an unchanged working tree."""

    clean_marker: str = CLEAN_WORKING_TREE_MARKER


@dataclass(frozen=True)
class DispatchSettings:
    """Top-level configuration aggregate."""

    path: Path | None = None
    repository: RepositorySettings = field(default_factory=RepositorySettings)
    toolchain: ToolchainSettings = field(default_factory=ToolchainSettings)
    install: InstallSettings = field(default_factory=InstallSettings)
    credentials: CredentialSettings = field(default_factory=CredentialSettings)
    test_run: TestRunSettings = field(default_factory=TestRunSettings)
    cleanliness: CleanlinessSettings = field(default_factory=CleanlinessSettings)

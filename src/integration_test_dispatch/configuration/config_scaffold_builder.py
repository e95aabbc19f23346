"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "dispatch.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Dispatch configuration for integration-test-dispatch.
# Every key is optional; the values below are the built-in defaults.
# DISPATCH_PYTHON_VERSION and DISPATCH_POETRY_VERSION in the environment
# override the toolchain section.

repository:
  name: "langchain-aws"
  # {fork} and {repository} are filled in from the dispatch inputs.
  url_template: "https://github.com/{fork}/{repository}.git"
  clone_depth: 1

toolchain:
  python_version: "3.11"
  poetry_version: "1.7.1"

install:
  # Passed to `poetry install --with`.
  groups:
    - "test"
    - "test_integration"

credentials:
  # Names of the secrets (environment variables) holding the AWS credentials.
  access_key_id_secret: "AWS_ACCESS_KEY_ID"
  secret_access_key_secret: "AWS_SECRET_ACCESS_KEY"
  region_secret: "AWS_REGION"

test_run:
  pytest_args:
    - "-vv"
    - "-s"

cleanliness:
  clean_marker: "nothing to commit, working tree clean"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML dispatch configuration with the defaults and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the dispatch configuration scaffold to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()

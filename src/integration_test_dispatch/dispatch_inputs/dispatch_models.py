"""Dispatch input entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WorkingDirectory(str, Enum):
    """Sub-packages of the monorepo that can be tested."""

    AWS = "libs/aws"
    LANGGRAPH_CHECKPOINT_AWS = "libs/langgraph-checkpoint-aws"


DEFAULT_WORKING_DIRECTORY = WorkingDirectory.AWS
DEFAULT_FORK = "langchain-ai"
DEFAULT_BRANCH = "main"
DEFAULT_TEST_FILE = "tests/integration_tests/**/test*.py"


@dataclass(frozen=True)
class DispatchInputs:
    """Run parameters supplied when a dispatch is triggered."""

    working_directory: WorkingDirectory = DEFAULT_WORKING_DIRECTORY
    fork: str = DEFAULT_FORK
    branch: str = DEFAULT_BRANCH
    test_file: str = DEFAULT_TEST_FILE

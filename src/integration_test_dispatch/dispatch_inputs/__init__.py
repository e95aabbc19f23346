"""Dispatch input domain exports."""

from .dispatch_models import (
    DEFAULT_BRANCH,
    DEFAULT_FORK,
    DEFAULT_TEST_FILE,
    DEFAULT_WORKING_DIRECTORY,
    DispatchInputs,
    WorkingDirectory,
)
from .input_resolution import (
    DispatchInputError,
    build_dispatch_inputs,
    working_directory_choices,
)

__all__ = [
    "DEFAULT_BRANCH",
    "DEFAULT_FORK",
    "DEFAULT_TEST_FILE",
    "DEFAULT_WORKING_DIRECTORY",
    "DispatchInputs",
    "WorkingDirectory",
    "DispatchInputError",
    "build_dispatch_inputs",
    "working_directory_choices",
]

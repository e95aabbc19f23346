"""Test execution domain exports."""

from .pytest_invocation import (
    TestRunError,
    build_pytest_command,
    expand_test_file_pattern,
    run_integration_tests,
    split_test_file_argument,
)

__all__ = [
    "TestRunError",
    "build_pytest_command",
    "expand_test_file_pattern",
    "run_integration_tests",
    "split_test_file_argument",
]

"""Cleanliness verification domain exports."""

from .working_tree_check import (
    GIT_STATUS_COMMAND,
    DirtyWorkspaceError,
    is_clean_status,
    verify_clean_working_tree,
)

__all__ = [
    "GIT_STATUS_COMMAND",
    "DirtyWorkspaceError",
    "is_clean_status",
    "verify_clean_working_tree",
]

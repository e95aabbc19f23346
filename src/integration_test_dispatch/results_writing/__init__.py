"""Results writing domain exports."""

from .run_report_writer import (
    GIT_STATUS_SHEET_NAME,
    RUN_INFO_SHEET_NAME,
    STEPS_SHEET_NAME,
    write_run_report,
)

__all__ = [
    "GIT_STATUS_SHEET_NAME",
    "RUN_INFO_SHEET_NAME",
    "STEPS_SHEET_NAME",
    "write_run_report",
]

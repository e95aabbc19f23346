"""Run report workbook writer service."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

if TYPE_CHECKING:
    from integration_test_dispatch.run_execution.run_contracts import RunOutcome

RUN_INFO_SHEET_NAME = "RunInfo"
STEPS_SHEET_NAME = "Steps"
GIT_STATUS_SHEET_NAME = "GitStatus"
_STEP_COLUMNS = ("Step", "Status", "Detail")


def write_run_report(outcome: RunOutcome, output_path: Path | str) -> Path:
    """Write a workbook describing the inputs, step results and final git status."""
    workbook = Workbook()
    run_info = workbook.active
    run_info.title = RUN_INFO_SHEET_NAME
    _write_run_info_sheet(run_info, outcome)
    _write_steps_sheet(workbook.create_sheet(STEPS_SHEET_NAME), outcome)
    _write_git_status_sheet(workbook.create_sheet(GIT_STATUS_SHEET_NAME), outcome.git_status)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output.resolve()


def _write_run_info_sheet(sheet: Worksheet, outcome: RunOutcome) -> None:
    inputs = outcome.inputs
    rows = (
        ("Status", "PASSED" if outcome.succeeded else "FAILED"),
        ("FailureKind", outcome.failure_kind.value if outcome.failure_kind else ""),
        ("WorkingDirectory", inputs.working_directory.value),
        ("Fork", inputs.fork),
        ("Branch", inputs.branch),
        ("TestFile", inputs.test_file),
        ("StartedAt", outcome.started_at.isoformat()),
        ("FinishedAt", outcome.finished_at.isoformat()),
        ("DurationSeconds", round((outcome.finished_at - outcome.started_at).total_seconds(), 3)),
    )
    for row in rows:
        _append_row(sheet, row)
    for row in sheet.iter_rows(min_col=1, max_col=1):
        row[0].font = Font(bold=True)
    _autosize_columns(sheet)


def _write_steps_sheet(sheet: Worksheet, outcome: RunOutcome) -> None:
    sheet.append(_STEP_COLUMNS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for step in outcome.steps:
        _append_row(sheet, (step.step.value, step.status.value, step.detail))
    sheet.freeze_panes = "A2"
    _autosize_columns(sheet)


def _write_git_status_sheet(sheet: Worksheet, git_status: str) -> None:
    for line in git_status.splitlines():
        _append_row(sheet, (line,))


def _append_row(sheet: Worksheet, values: tuple[object, ...]) -> None:
    sheet.append(values)
    # Text such as a branch named "=cmd" must stay a string, never a formula.
    for cell in sheet[sheet.max_row]:
        if isinstance(cell.value, str):
            cell.data_type = "s"


def _autosize_columns(sheet: Worksheet) -> None:
    for index, column in enumerate(sheet.iter_cols(), start=1):
        width = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 2, 80)

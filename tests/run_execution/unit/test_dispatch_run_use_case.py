"""Tests for the dispatch run use-case service."""

from __future__ import annotations

from pathlib import Path

import pytest
from integration_test_dispatch.configuration import DispatchSettings
from integration_test_dispatch.dispatch_inputs import build_dispatch_inputs
from integration_test_dispatch.process_execution import CommandResult
from integration_test_dispatch.run_execution import (
    FailureKind,
    RunExecutionError,
    RunRequest,
    StepName,
    StepStatus,
    execute_integration_test_dispatch,
    plan_integration_test_dispatch,
)
from openpyxl import load_workbook

_CLEAN_STATUS = "On branch main\nnothing to commit, working tree clean\n"
_DIRTY_STATUS = "On branch main\nUntracked files:\n\tlibs/aws/out.log\n"
_BASE_ENV = {"PATH": "/usr/bin", "AWS_PROFILE": "personal"}
_SECRETS = {
    "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
    "AWS_SECRET_ACCESS_KEY": "very-secret",
    "AWS_REGION": "us-west-2",
}


class _ScriptedRunner:
    """Fake command runner simulating clone, poetry, pytest and git status."""

    def __init__(
        self,
        *,
        failing_fragment: str | None = None,
        status_text: str = _CLEAN_STATUS,
    ) -> None:
        self.failing_fragment = failing_fragment
        self.status_text = status_text
        self.calls: list[dict] = []

    def __call__(self, command, cwd, *, env=None, capture_output=False) -> CommandResult:
        self.calls.append({"command": command, "cwd": cwd, "env": env})
        if self.failing_fragment is not None and self.failing_fragment in command:
            return CommandResult(command=command, returncode=1)
        if command[:2] == ("git", "clone"):
            for package in ("libs/aws", "libs/langgraph-checkpoint-aws"):
                (Path(command[-1]) / package).mkdir(parents=True)
        if command == ("git", "status"):
            return CommandResult(command=command, returncode=0, stdout=self.status_text)
        return CommandResult(command=command, returncode=0)

    def ran(self, fragment: str) -> bool:
        return any(fragment in call["command"] for call in self.calls)


def _which(name: str) -> str | None:
    return f"/opt/python/bin/{name}"


def _request(tmp_path: Path, **overrides) -> RunRequest:
    inputs = build_dispatch_inputs(**overrides)
    return RunRequest(inputs=inputs, workspace=tmp_path / "workspace")


def _execute(request: RunRequest, runner: _ScriptedRunner, secrets=None, base_env=None):
    return execute_integration_test_dispatch(
        request,
        settings=DispatchSettings(),
        run_command_fn=runner,
        secret_store=_SECRETS if secrets is None else secrets,
        base_env=_BASE_ENV if base_env is None else base_env,
        which=_which,
    )


def _statuses(outcome) -> dict[StepName, StepStatus]:
    return {step.step: step.status for step in outcome.steps}


def test_successful_run_passes_every_step_in_order(tmp_path: Path) -> None:
    runner = _ScriptedRunner()

    outcome = _execute(_request(tmp_path), runner)

    assert outcome.succeeded
    assert outcome.failure_kind is None
    assert [step.step for step in outcome.steps] == list(StepName)
    assert all(step.status is StepStatus.PASSED for step in outcome.steps)
    assert outcome.git_status == _CLEAN_STATUS
    assert outcome.started_at <= outcome.finished_at


def test_tests_run_with_injected_credentials_in_the_working_directory(tmp_path: Path) -> None:
    runner = _ScriptedRunner()
    request = _request(tmp_path, working_directory="libs/langgraph-checkpoint-aws")

    _execute(request, runner)

    pytest_call = next(call for call in runner.calls if "pytest" in call["command"])
    assert pytest_call["cwd"] == request.package_dir
    assert pytest_call["cwd"].parts[-2:] == ("libs", "langgraph-checkpoint-aws")
    assert pytest_call["env"]["AWS_ACCESS_KEY_ID"] == "AKIAEXAMPLE"
    assert pytest_call["env"]["AWS_DEFAULT_REGION"] == "us-west-2"
    assert "AWS_PROFILE" not in pytest_call["env"]
    assert pytest_call["command"][1:5] == ("run", "pytest", "-vv", "-s")


def test_invalid_branch_stops_before_any_later_step(tmp_path: Path) -> None:
    runner = _ScriptedRunner(failing_fragment="clone")

    outcome = _execute(_request(tmp_path, branch="no-such-branch"), runner)

    assert not outcome.succeeded
    assert outcome.failure_kind is FailureKind.SOURCE_ACQUISITION
    assert outcome.failed_step is not None
    assert "no-such-branch" in outcome.failed_step.detail
    assert len(runner.calls) == 1
    assert _statuses(outcome) == {
        StepName.SOURCE_ACQUISITION: StepStatus.FAILED,
        StepName.ENVIRONMENT_PROVISIONING: StepStatus.SKIPPED,
        StepName.CREDENTIAL_INJECTION: StepStatus.SKIPPED,
        StepName.TEST_EXECUTION: StepStatus.SKIPPED,
        StepName.CLEANLINESS_VERIFICATION: StepStatus.SKIPPED,
    }


def test_unusable_checkout_path_fails_source_acquisition(tmp_path: Path) -> None:
    request = _request(tmp_path)
    request.workspace.mkdir()
    request.checkout_dir.write_text("not a directory", encoding="utf-8")
    runner = _ScriptedRunner()

    outcome = _execute(request, runner)

    assert outcome.failure_kind is FailureKind.SOURCE_ACQUISITION
    assert outcome.failed_step is not None
    assert "Cannot prepare checkout destination" in outcome.failed_step.detail
    assert runner.calls == []


def test_poetry_commands_do_not_inherit_an_active_virtualenv(tmp_path: Path) -> None:
    runner = _ScriptedRunner()
    base_env = {
        "PATH": "/usr/bin",
        "VIRTUAL_ENV": "/srv/dispatcher/.venv",
        "POETRY_ACTIVE": "1",
    }

    outcome = _execute(_request(tmp_path), runner, base_env=base_env)

    assert outcome.succeeded
    toolchain_calls = [call for call in runner.calls if call["command"][0] != "git"]
    assert len(toolchain_calls) == 5
    for call in toolchain_calls:
        assert call["env"] is not None
        assert "VIRTUAL_ENV" not in call["env"]
        assert "POETRY_ACTIVE" not in call["env"]
        assert call["env"]["PATH"] == "/usr/bin"


def test_dependency_installation_failure_is_fatal(tmp_path: Path) -> None:
    runner = _ScriptedRunner(failing_fragment="--with")

    outcome = _execute(_request(tmp_path), runner)

    assert outcome.failure_kind is FailureKind.DEPENDENCY_INSTALLATION
    assert not runner.ran("pytest")


@pytest.mark.parametrize("secrets", [{}, {**_SECRETS, "AWS_SECRET_ACCESS_KEY": ""}])
def test_missing_secrets_fail_with_authentication_error_without_running_tests(
    tmp_path: Path, secrets: dict[str, str]
) -> None:
    runner = _ScriptedRunner()

    outcome = _execute(_request(tmp_path), runner, secrets=secrets)

    assert outcome.failure_kind is FailureKind.AUTHENTICATION
    assert _statuses(outcome)[StepName.CREDENTIAL_INJECTION] is StepStatus.FAILED
    assert _statuses(outcome)[StepName.TEST_EXECUTION] is StepStatus.SKIPPED
    assert not runner.ran("pytest")


def test_failing_tests_skip_cleanliness_verification(tmp_path: Path) -> None:
    runner = _ScriptedRunner(failing_fragment="pytest")

    outcome = _execute(_request(tmp_path), runner)

    assert outcome.failure_kind is FailureKind.TEST_ASSERTION
    assert _statuses(outcome)[StepName.CLEANLINESS_VERIFICATION] is StepStatus.SKIPPED
    assert not runner.ran("status")


def test_dirty_working_tree_fails_the_run(tmp_path: Path) -> None:
    runner = _ScriptedRunner(status_text=_DIRTY_STATUS)

    outcome = _execute(_request(tmp_path), runner)

    assert outcome.failure_kind is FailureKind.DIRTY_WORKSPACE
    assert outcome.git_status == _DIRTY_STATUS
    assert _statuses(outcome)[StepName.TEST_EXECUTION] is StepStatus.PASSED


def test_report_is_written_for_failed_runs(tmp_path: Path) -> None:
    runner = _ScriptedRunner(status_text=_DIRTY_STATUS)
    report_path = tmp_path / "reports" / "run.xlsx"
    request = RunRequest(
        inputs=build_dispatch_inputs(),
        workspace=tmp_path / "workspace",
        report_path=str(report_path),
    )

    _execute(request, runner)

    workbook = load_workbook(report_path)
    steps = list(workbook["Steps"].iter_rows(values_only=True))
    assert steps[-1][:2] == ("cleanliness_verification", "FAILED")


def test_invalid_configuration_raises_before_any_step(tmp_path: Path) -> None:
    config_path = tmp_path / "dispatch.yaml"
    config_path.write_text("repository: nope\n", encoding="utf-8")
    request = RunRequest(
        inputs=build_dispatch_inputs(),
        workspace=tmp_path / "workspace",
        config_path=str(config_path),
    )
    runner = _ScriptedRunner()

    with pytest.raises(RunExecutionError, match="repository"):
        execute_integration_test_dispatch(request, run_command_fn=runner)
    assert runner.calls == []


def test_plan_lists_every_step_with_its_commands(tmp_path: Path) -> None:
    request = _request(tmp_path, fork="someone", branch="topic")

    plan = plan_integration_test_dispatch(request, DispatchSettings())

    assert [planned.step for planned in plan] == list(StepName)
    clone_command = plan[0].commands[0]
    assert "https://github.com/someone/langchain-aws.git" in clone_command
    assert "topic" in clone_command
    assert plan[1].commands[-1][-2:] == ("--with", "test,test_integration")
    assert plan[2].commands == ()
    assert plan[3].commands[0][-1] == "tests/integration_tests/**/test*.py"
    assert plan[4].commands == (("git", "status"),)
    assert not (tmp_path / "workspace").exists()

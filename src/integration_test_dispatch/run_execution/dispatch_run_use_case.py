"""Dispatch run use-case service."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from integration_test_dispatch.cleanliness_verification import (
    GIT_STATUS_COMMAND,
    DirtyWorkspaceError,
    verify_clean_working_tree,
)
from integration_test_dispatch.configuration import (
    ConfigurationError,
    DispatchSettings,
    load_settings,
)
from integration_test_dispatch.credential_injection import (
    CredentialError,
    build_credential_environment,
    read_credentials,
)
from integration_test_dispatch.environment_provisioning import (
    ExecutableLookup,
    ProvisioningError,
    build_env_use_command,
    build_install_command,
    build_poetry_bootstrap_commands,
    provision_environment,
    tools_poetry_executable,
    without_active_environment,
)
from integration_test_dispatch.process_execution import CommandRunner, run_command
from integration_test_dispatch.results_writing import write_run_report
from integration_test_dispatch.source_acquisition import (
    SourceAcquisitionError,
    acquire_source,
    build_clone_command,
)
from integration_test_dispatch.test_execution import (
    TestRunError,
    build_pytest_command,
    run_integration_tests,
    split_test_file_argument,
)

from .run_contracts import (
    FailureKind,
    PlannedStep,
    RunOutcome,
    RunRequest,
    StepName,
    StepOutcome,
    StepStatus,
)

logger = logging.getLogger(__name__)


class RunExecutionError(Exception):
    """Raised when a dispatch cannot be started or its report cannot be written."""


@dataclass
class _RunState:
    """Values handed from one step to the next."""

    poetry_executable: Path | str = "poetry"
    test_environment: dict[str, str] | None = None
    git_status: str = ""


@dataclass(frozen=True)
class _RunContext:
    request: RunRequest
    settings: DispatchSettings
    run_command: CommandRunner
    secret_store: Mapping[str, str]
    base_env: Mapping[str, str]
    which: ExecutableLookup


_STEP_FAILURES: dict[StepName, tuple[type[Exception], FailureKind]] = {
    StepName.SOURCE_ACQUISITION: (SourceAcquisitionError, FailureKind.SOURCE_ACQUISITION),
    StepName.ENVIRONMENT_PROVISIONING: (
        ProvisioningError,
        FailureKind.DEPENDENCY_INSTALLATION,
    ),
    StepName.CREDENTIAL_INJECTION: (CredentialError, FailureKind.AUTHENTICATION),
    StepName.TEST_EXECUTION: (TestRunError, FailureKind.TEST_ASSERTION),
    StepName.CLEANLINESS_VERIFICATION: (DirtyWorkspaceError, FailureKind.DIRTY_WORKSPACE),
}


# pylint: disable=too-many-arguments
def execute_integration_test_dispatch(
    request: RunRequest,
    *,
    settings: DispatchSettings | None = None,
    run_command_fn: CommandRunner | None = None,
    secret_store: Mapping[str, str] | None = None,
    base_env: Mapping[str, str] | None = None,
    which: ExecutableLookup | None = None,
) -> RunOutcome:
    """Execute every step in order, stopping at the first failure.

    Steps after a failed one are reported as skipped. The run report is
    written when the request names one, whatever the outcome.
    """
    context = _RunContext(
        request=request,
        settings=settings if settings is not None else _load_settings(request.config_path),
        run_command=run_command_fn or run_command,
        secret_store=os.environ if secret_store is None else secret_store,
        base_env=os.environ if base_env is None else base_env,
        which=which or shutil.which,
    )
    state = _RunState()
    steps: list[StepOutcome] = []
    failure_kind: FailureKind | None = None
    started_at = datetime.now(UTC)

    for step_name, step_fn in _STEP_SEQUENCE:
        if failure_kind is not None:
            steps.append(StepOutcome(step=step_name, status=StepStatus.SKIPPED))
            continue
        error_type, kind = _STEP_FAILURES[step_name]
        logger.info("Step %s started", step_name.value)
        try:
            detail = step_fn(context, state)
        except error_type as exc:
            logger.error("Step %s failed: %s", step_name.value, exc)
            steps.append(StepOutcome(step=step_name, status=StepStatus.FAILED, detail=str(exc)))
            failure_kind = kind
            if isinstance(exc, DirtyWorkspaceError):
                state.git_status = exc.status_text
            continue
        steps.append(StepOutcome(step=step_name, status=StepStatus.PASSED, detail=detail))

    outcome = RunOutcome(
        inputs=request.inputs,
        steps=tuple(steps),
        started_at=started_at,
        finished_at=datetime.now(UTC),
        git_status=state.git_status,
        failure_kind=failure_kind,
    )
    if request.report_path:
        try:
            write_run_report(outcome, request.report_path)
        except OSError as exc:
            raise RunExecutionError(f"Failed to write run report: {exc}") from exc
    return outcome


def plan_integration_test_dispatch(
    request: RunRequest, settings: DispatchSettings
) -> tuple[PlannedStep, ...]:
    """Describe every step and its commands without running anything.

    Raises:
      TestRunError: If the test-file value cannot be split into words.
    """
    inputs = request.inputs
    toolchain = settings.toolchain
    interpreter = f"python{toolchain.python_version}"
    poetry = tools_poetry_executable(request.tools_dir, toolchain)
    credentials = settings.credentials
    return (
        PlannedStep(
            step=StepName.SOURCE_ACQUISITION,
            description=(
                f"Check out {inputs.fork}/{settings.repository.name}@{inputs.branch} "
                f"into {request.checkout_dir}"
            ),
            commands=(build_clone_command(inputs, settings.repository, request.checkout_dir),),
        ),
        PlannedStep(
            step=StepName.ENVIRONMENT_PROVISIONING,
            description=(
                f"Set up Python {toolchain.python_version} + Poetry "
                f"{toolchain.poetry_version} in {request.package_dir}"
            ),
            commands=(
                *build_poetry_bootstrap_commands(interpreter, toolchain, request.tools_dir),
                build_env_use_command(interpreter, poetry),
                build_install_command(settings.install, poetry),
            ),
        ),
        PlannedStep(
            step=StepName.CREDENTIAL_INJECTION,
            description=(
                "Read AWS credentials from secrets "
                f"{credentials.access_key_id_secret}, "
                f"{credentials.secret_access_key_secret} and {credentials.region_secret}"
            ),
        ),
        PlannedStep(
            step=StepName.TEST_EXECUTION,
            description=f"Run {inputs.test_file} in {request.package_dir}",
            commands=(
                build_pytest_command(
                    split_test_file_argument(inputs.test_file), settings.test_run, poetry
                ),
            ),
        ),
        PlannedStep(
            step=StepName.CLEANLINESS_VERIFICATION,
            description=(
                f"Require '{settings.cleanliness.clean_marker}' in the git status output"
            ),
            commands=(GIT_STATUS_COMMAND,),
        ),
    )


def _load_settings(config_path: str | None) -> DispatchSettings:
    try:
        return load_settings(config_path)
    except (ConfigurationError, OSError) as exc:
        raise RunExecutionError(str(exc)) from exc


def _acquire_source(context: _RunContext, _state: _RunState) -> str:
    request = context.request
    checkout_dir = acquire_source(
        request.inputs,
        context.settings.repository,
        request.checkout_dir,
        context.run_command,
    )
    inputs = request.inputs
    return f"{inputs.fork}/{context.settings.repository.name}@{inputs.branch} -> {checkout_dir}"


def _provision_environment(context: _RunContext, state: _RunState) -> str:
    settings = context.settings
    environment = provision_environment(
        package_dir=context.request.package_dir,
        toolchain=settings.toolchain,
        install=settings.install,
        tools_dir=context.request.tools_dir,
        run_command=context.run_command,
        which=context.which,
        base_env=context.base_env,
    )
    state.poetry_executable = environment.poetry_executable
    return (
        f"Python {settings.toolchain.python_version} ({environment.interpreter}), "
        f"Poetry {settings.toolchain.poetry_version}"
    )


def _inject_credentials(context: _RunContext, state: _RunState) -> str:
    credentials = read_credentials(context.settings.credentials, context.secret_store)
    state.test_environment = build_credential_environment(
        credentials, without_active_environment(context.base_env)
    )
    return f"region {credentials.region}"


def _run_tests(context: _RunContext, state: _RunState) -> str:
    if state.test_environment is None:
        raise TestRunError("Refusing to run tests without AWS credentials.")
    run_integration_tests(
        package_dir=context.request.package_dir,
        test_file=context.request.inputs.test_file,
        test_run=context.settings.test_run,
        environment=state.test_environment,
        run_command=context.run_command,
        poetry_executable=state.poetry_executable,
    )
    return f"{context.request.inputs.test_file} passed"


def _verify_cleanliness(context: _RunContext, state: _RunState) -> str:
    state.git_status = verify_clean_working_tree(
        context.request.package_dir,
        context.settings.cleanliness,
        context.run_command,
        base_env=context.base_env,
    )
    return context.settings.cleanliness.clean_marker


_STEP_SEQUENCE: tuple[tuple[StepName, Callable[[_RunContext, _RunState], str]], ...] = (
    (StepName.SOURCE_ACQUISITION, _acquire_source),
    (StepName.ENVIRONMENT_PROVISIONING, _provision_environment),
    (StepName.CREDENTIAL_INJECTION, _inject_credentials),
    (StepName.TEST_EXECUTION, _run_tests),
    (StepName.CLEANLINESS_VERIFICATION, _verify_cleanliness),
)

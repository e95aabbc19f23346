"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from integration_test_dispatch.dispatch_inputs import DispatchInputs


class StepName(str, Enum):
    """Pipeline steps in execution order."""

    SOURCE_ACQUISITION = "source_acquisition"
    ENVIRONMENT_PROVISIONING = "environment_provisioning"
    CREDENTIAL_INJECTION = "credential_injection"
    TEST_EXECUTION = "test_execution"
    CLEANLINESS_VERIFICATION = "cleanliness_verification"


class StepStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class FailureKind(str, Enum):
    """Classes of fatal run failures."""

    SOURCE_ACQUISITION = "source_acquisition"
    DEPENDENCY_INSTALLATION = "dependency_installation"
    AUTHENTICATION = "authentication"
    TEST_ASSERTION = "test_assertion"
    DIRTY_WORKSPACE = "dirty_workspace"


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one dispatch."""

    inputs: DispatchInputs
    workspace: Path
    config_path: str | None = None
    report_path: str | None = None

    @property
    def checkout_dir(self) -> Path:
        return self.workspace / "checkout"

    @property
    def tools_dir(self) -> Path:
        return self.workspace / "tools"

    @property
    def package_dir(self) -> Path:
        return self.checkout_dir / self.inputs.working_directory.value


@dataclass(frozen=True)
class StepOutcome:
    """Result of one pipeline step."""

    step: StepName
    status: StepStatus
    detail: str = ""


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one completed dispatch."""

    inputs: DispatchInputs
    steps: tuple[StepOutcome, ...]
    started_at: datetime
    finished_at: datetime
    git_status: str = ""
    failure_kind: FailureKind | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure_kind is None

    @property
    def failed_step(self) -> StepOutcome | None:
        return next((step for step in self.steps if step.status == StepStatus.FAILED), None)


@dataclass(frozen=True)
class PlannedStep:
    """One step of a dry-run plan."""

    step: StepName
    description: str
    commands: tuple[tuple[str, ...], ...] = ()

"""Run execution domain exports."""

from .dispatch_run_use_case import (
    RunExecutionError,
    execute_integration_test_dispatch,
    plan_integration_test_dispatch,
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

__all__ = [
    "FailureKind",
    "PlannedStep",
    "RunOutcome",
    "RunRequest",
    "StepName",
    "StepOutcome",
    "StepStatus",
    "RunExecutionError",
    "execute_integration_test_dispatch",
    "plan_integration_test_dispatch",
]

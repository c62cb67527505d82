"""Run outcome returned by the step runner.

The runner never exits the process itself except in run_and_exit(),
which decides the exit status once, from RunResult.exit_code.
"""

from dataclasses import dataclass
from typing import Any

from waypoint.contracts.enums import RunStatus
from waypoint.contracts.working_set import WorkingSet


@dataclass(frozen=True)
class RunResult:
    """Result of a full runner invocation.

    Attributes:
        status: COMPLETED when every step succeeded, FAILED otherwise
        steps_completed: Steps applied during this invocation, in order
        steps_skipped: Steps skipped because a resumed checkpoint covered them
        resumed: Whether the run started from a checkpoint
        duration_seconds: Wall time of the invocation
        failed_step: Name of the failing step (None when no step was at fault)
        error: StepFailedError, CheckpointPersistenceError or
            CheckpointValidationError on failure
        working_set: Working set after the last successful step
    """

    status: RunStatus
    steps_completed: tuple[str, ...] = ()
    steps_skipped: tuple[str, ...] = ()
    resumed: bool = False
    duration_seconds: float = 0.0
    failed_step: str | None = None
    error: BaseException | None = None
    working_set: WorkingSet[Any] | None = None

    def __post_init__(self) -> None:
        if self.status == RunStatus.FAILED and self.error is None:
            raise ValueError("FAILED result must carry the error")
        if self.status == RunStatus.COMPLETED and self.error is not None:
            raise ValueError("COMPLETED result must not carry an error")

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

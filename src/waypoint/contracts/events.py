"""Observability events for runner execution.

These domain events are emitted by the TaskRunner and consumed by CLI
formatters for human-readable or structured output. Presentation lives
in waypoint.cli_formatters, never in the runner.
"""

from dataclasses import dataclass
from datetime import datetime

from waypoint.contracts.enums import RunStatus


@dataclass(frozen=True, slots=True)
class CheckpointDiscarded:
    """Emitted when a found checkpoint is stale and the run starts over."""

    reason: str


@dataclass(frozen=True, slots=True)
class CheckpointRestored:
    """Emitted when a valid checkpoint was accepted and the working set rebuilt."""

    step: str
    captured_at: datetime
    item_count: int


@dataclass(frozen=True, slots=True)
class StepStarted:
    """Emitted before a step is applied.

    Attributes:
        name: Step name
        index: Zero-based position in the step list
        total: Number of steps in the pipeline
    """

    name: str
    index: int
    total: int


@dataclass(frozen=True, slots=True)
class StepCompleted:
    """Emitted after a step succeeded and its checkpoint was saved."""

    name: str
    index: int
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class StepSkipped:
    """Emitted for each step covered by a resumed checkpoint."""

    name: str
    index: int


@dataclass(frozen=True, slots=True)
class StepFailed:
    """Emitted when a step fails.

    Stores the full exception object to preserve traceback and chained causes.
    """

    name: str
    index: int
    error: BaseException

    @property
    def error_message(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class RunFinished:
    """Summary emitted once by run_and_exit(), right before the process exits."""

    status: RunStatus
    steps_completed: int
    steps_skipped: int
    duration_seconds: float
    exit_code: int

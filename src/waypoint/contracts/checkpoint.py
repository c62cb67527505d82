"""Checkpoint and recovery domain contracts.

A checkpoint is the durable record written after every successful step.
Persisted form (serialized by core.checkpoint.serialization):

    {
      "formatVersion": 1,
      "capturedAt": <epoch millis>,
      "step": "<name of the step that just completed>",
      "data": {
        "options": {...backupable subset of the run options...},
        "head": "<external reference, e.g. VCS head>",
        "state": {"<item key>": {...per-item state...}}
      }
    }
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar

from waypoint.contracts.errors import CheckpointCorruptionError


@dataclass(frozen=True)
class CheckpointData:
    """Workflow-provided payload of a checkpoint.

    Attributes:
        options: Backupable subset of the run options, structurally comparable
        head: Opaque external reference token captured with the checkpoint
        state: Per-item state fragments keyed by item key. Each entry is
            independently deserializable; a missing entry means default state.
    """

    options: dict[str, Any]
    head: str
    state: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Checkpoint:
    """Durable snapshot of run progress.

    Format Versions:
        Version 1: current
    """

    CURRENT_FORMAT_VERSION: ClassVar[int] = 1

    captured_at: int  # epoch millis
    step: str
    data: CheckpointData
    format_version: int = CURRENT_FORMAT_VERSION

    def __post_init__(self) -> None:
        if not self.step:
            raise ValueError("step is required and cannot be empty")

    @property
    def captured_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.captured_at / 1000, tz=UTC)

    def to_record(self) -> dict[str, Any]:
        return {
            "formatVersion": self.format_version,
            "capturedAt": self.captured_at,
            "step": self.step,
            "data": {
                "options": self.data.options,
                "head": self.data.head,
                "state": self.data.state,
            },
        }

    @classmethod
    def from_record(cls, record: Any) -> "Checkpoint":
        """Build a Checkpoint from its persisted form.

        Raises:
            CheckpointCorruptionError: If any field is missing or has the wrong type
        """
        if not isinstance(record, dict):
            raise CheckpointCorruptionError(f"Checkpoint record must be an object, got {type(record).__name__}")
        try:
            data = record["data"]
            captured_at = record["capturedAt"]
            step = record["step"]
            format_version = record["formatVersion"]
            options = data["options"]
            head = data["head"]
            state = data["state"]
        except (KeyError, TypeError) as e:
            raise CheckpointCorruptionError(f"Checkpoint record is missing field {e}") from e

        # bool is an int subclass; reject it explicitly
        if not isinstance(captured_at, int) or isinstance(captured_at, bool):
            raise CheckpointCorruptionError(f"capturedAt must be an integer, got {captured_at!r}")
        if not isinstance(format_version, int) or isinstance(format_version, bool):
            raise CheckpointCorruptionError(f"formatVersion must be an integer, got {format_version!r}")
        if not isinstance(step, str) or not step:
            raise CheckpointCorruptionError(f"step must be a non-empty string, got {step!r}")
        if not isinstance(head, str):
            raise CheckpointCorruptionError(f"data.head must be a string, got {head!r}")
        if not isinstance(options, dict):
            raise CheckpointCorruptionError("data.options must be an object")
        if not isinstance(state, dict):
            raise CheckpointCorruptionError("data.state must be an object")

        return cls(
            captured_at=captured_at,
            step=step,
            data=CheckpointData(options=options, head=head, state=state),
            format_version=format_version,
        )


@dataclass(frozen=True)
class ValidityCheck:
    """Result of checking whether a checkpoint matches the current invocation.

    Used by CheckpointValidator and RecoveryManager to communicate whether
    resume is possible and why not.
    """

    is_valid: bool
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.is_valid and self.reason is not None:
            raise ValueError("is_valid=True should not have a reason")
        if not self.is_valid and self.reason is None:
            raise ValueError("is_valid=False must have a reason explaining why")


@dataclass(frozen=True)
class ResumePoint:
    """Where a resumed run picks up.

    Attributes:
        checkpoint: The accepted checkpoint
        start_index: Index of the first step to run (the one after checkpoint.step)
    """

    checkpoint: Checkpoint
    start_index: int

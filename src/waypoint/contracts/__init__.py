"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes are NOT re-exported here - import them from waypoint.core.config.

Import patterns:
    from waypoint.contracts import Checkpoint, WorkingSet, RunResult
"""

from waypoint.contracts.checkpoint import Checkpoint, CheckpointData, ResumePoint, ValidityCheck
from waypoint.contracts.enums import ReleaseType, RunStatus
from waypoint.contracts.errors import (
    CheckpointCorruptionError,
    CheckpointPersistenceError,
    CheckpointValidationError,
    StepFailedError,
    WaypointError,
)
from waypoint.contracts.events import (
    CheckpointDiscarded,
    CheckpointRestored,
    RunFinished,
    StepCompleted,
    StepFailed,
    StepSkipped,
    StepStarted,
)
from waypoint.contracts.results import RunResult
from waypoint.contracts.working_set import Item, WorkingSet

__all__ = [
    "Checkpoint",
    "CheckpointCorruptionError",
    "CheckpointData",
    "CheckpointDiscarded",
    "CheckpointPersistenceError",
    "CheckpointRestored",
    "CheckpointValidationError",
    "Item",
    "ReleaseType",
    "ResumePoint",
    "RunFinished",
    "RunResult",
    "RunStatus",
    "StepCompleted",
    "StepFailed",
    "StepFailedError",
    "StepSkipped",
    "StepStarted",
    "ValidityCheck",
    "WaypointError",
    "WorkingSet",
]

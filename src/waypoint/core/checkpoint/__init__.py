"""Checkpoint subsystem for resumable runs.

Provides:
- CheckpointStore: Atomic save/load/clear of the checkpoint file, with expiration
- CheckpointValidator: Default validity policy (external reference + options diff)
- RecoveryManager: Startup protocol deciding if/where a run resumes
- StateReconstructor: Rebuilds the working set from checkpointed item state
- AutomaticResumeDecision / InteractiveResumeDecision: Resume decisions
- checkpoint_dumps/checkpoint_loads: Type-preserving JSON serialization
"""

from waypoint.contracts import ResumePoint, ValidityCheck
from waypoint.core.checkpoint.compatibility import CheckpointValidator
from waypoint.core.checkpoint.decision import (
    AutomaticResumeDecision,
    InteractiveResumeDecision,
    ResumeDecision,
    resume_decision,
)
from waypoint.core.checkpoint.reconstruction import StateReconstructor
from waypoint.core.checkpoint.recovery import RecoveryManager
from waypoint.core.checkpoint.serialization import checkpoint_dumps, checkpoint_loads
from waypoint.core.checkpoint.store import CheckpointStore

__all__ = [
    "AutomaticResumeDecision",
    "CheckpointStore",
    "CheckpointValidator",
    "InteractiveResumeDecision",
    "RecoveryManager",
    "ResumeDecision",
    "ResumePoint",
    "StateReconstructor",
    "ValidityCheck",
    "checkpoint_dumps",
    "checkpoint_loads",
    "resume_decision",
]

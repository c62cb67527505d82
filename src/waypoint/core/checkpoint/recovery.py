"""Recovery protocol: decide whether a run resumes from a checkpoint.

Startup protocol:
1. Load the checkpoint (missing, expired or corrupt → fresh run)
2. The checkpointed step must still be part of the pipeline
3. Ask the validity policy; stale → notify and run fresh
4. Ask the resume decision; declined → run fresh, keep the file
5. Accepted → resume at the step after the checkpointed one

The working set itself is rebuilt by the runner (see TaskRunner).
"""

from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

import structlog

from waypoint.contracts import Checkpoint, ResumePoint, ValidityCheck
from waypoint.core.checkpoint.store import CheckpointStore

OptionsT = TypeVar("OptionsT")

__all__ = [
    "RecoveryManager",
    "ResumePoint",  # Re-exported from contracts for convenience
]


class RecoveryManager(Generic[OptionsT]):
    """Finds the resume point for a new invocation.

    Usage:
        recovery = RecoveryManager(store, ["a", "b"], validate, should_resume, on_discarded)
        resume_point = recovery.find_resume_point(options)
        if resume_point is not None:
            # skip steps before resume_point.start_index
    """

    def __init__(
        self,
        store: CheckpointStore,
        step_names: Sequence[str],
        validate: Callable[[Checkpoint, OptionsT], ValidityCheck],
        should_resume: Callable[[Checkpoint], bool],
        on_discarded: Callable[[ValidityCheck], None],
    ) -> None:
        self._store = store
        self._step_names = list(step_names)
        self._validate = validate
        self._should_resume = should_resume
        self._on_discarded = on_discarded
        self._logger = structlog.get_logger(__name__)

    def check(self, checkpoint: Checkpoint, options: OptionsT) -> ValidityCheck:
        """Structural check (step still exists) followed by the validity policy."""
        if checkpoint.step not in self._step_names:
            return ValidityCheck(
                is_valid=False,
                reason=f"Checkpoint step '{checkpoint.step}' is no longer part of the pipeline.",
            )
        return self._validate(checkpoint, options)

    def find_resume_point(self, options: OptionsT) -> ResumePoint | None:
        """Run the startup protocol.

        Returns:
            ResumePoint if a valid checkpoint was accepted, None for a fresh run
        """
        checkpoint = self._store.load()
        if checkpoint is None:
            return None

        check = self.check(checkpoint, options)
        if not check.is_valid:
            self._logger.info("Discarding stale checkpoint", step=checkpoint.step, reason=check.reason)
            self._on_discarded(check)
            return None

        if not self._should_resume(checkpoint):
            self._logger.info("Valid checkpoint declined, starting from scratch", step=checkpoint.step)
            return None

        start_index = self._step_names.index(checkpoint.step) + 1
        return ResumePoint(checkpoint=checkpoint, start_index=start_index)

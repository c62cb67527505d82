# src/waypoint/engine/runner.py
"""TaskRunner: resumable, checkpointed step sequencer.

Coordinates:
- Startup: checkpoint lookup, validity check, resume decision (RecoveryManager)
- Working-set reconstruction when resuming
- Strictly sequential step execution
- A checkpoint after every successful step
- Checkpoint removal once the last step succeeded

Failures never leave a partial checkpoint behind: the step that failed
is not checkpointed, so the file on disk still reflects the previous
step, and every save replaces the file atomically.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Generic, NoReturn, TypeVar

import structlog

from waypoint.contracts import (
    Checkpoint,
    CheckpointCorruptionError,
    CheckpointData,
    CheckpointDiscarded,
    CheckpointPersistenceError,
    CheckpointRestored,
    CheckpointValidationError,
    RunFinished,
    RunResult,
    RunStatus,
    StepCompleted,
    StepFailed,
    StepFailedError,
    StepSkipped,
    StepStarted,
    ValidityCheck,
    WorkingSet,
)
from waypoint.core.checkpoint.recovery import RecoveryManager
from waypoint.core.checkpoint.store import CheckpointStore
from waypoint.core.clock import DEFAULT_CLOCK, Clock
from waypoint.core.events import EventBusProtocol, NullEventBus
from waypoint.engine.steps import Step

OptionsT = TypeVar("OptionsT")

logger = structlog.get_logger(__name__)


class TaskRunner(Generic[OptionsT]):
    """Runs an ordered list of steps over a working set, resuming when possible.

    Collaborators are injected at construction time:
        validate_checkpoint: (checkpoint, options) -> ValidityCheck | bool
        should_resume: (checkpoint) -> bool
        reconstruct: (per_item_state) -> WorkingSet
        create_checkpoint_data: (step, working_set, options) -> CheckpointData
        on_checkpoint_discarded: (ValidityCheck) -> None, optional

    Example:
        runner = TaskRunner(
            steps=[add_one, double],
            store=CheckpointStore(path, expiration=timedelta(hours=24)),
            validate_checkpoint=validator.validate,
            should_resume=decision.should_resume,
            reconstruct=reconstructor.reconstruct,
            create_checkpoint_data=create_data,
        )
        runner.run_and_exit(initial, options)
    """

    def __init__(
        self,
        steps: Sequence[Step],
        store: CheckpointStore,
        *,
        validate_checkpoint: Callable[[Checkpoint, OptionsT], ValidityCheck | bool],
        should_resume: Callable[[Checkpoint], bool],
        reconstruct: Callable[[Mapping[str, Any]], WorkingSet[Any]],
        create_checkpoint_data: Callable[[Step, WorkingSet[Any], OptionsT], CheckpointData],
        on_checkpoint_discarded: Callable[[ValidityCheck], None] | None = None,
        event_bus: EventBusProtocol | None = None,
        clock: Clock | None = None,
    ) -> None:
        names = [s.name for s in steps]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Step names must be unique, duplicated: {duplicates}")
        if not steps:
            raise ValueError("TaskRunner requires at least one step")

        self._steps = list(steps)
        self._store = store
        self._validate_checkpoint = validate_checkpoint
        self._should_resume = should_resume
        self._reconstruct = reconstruct
        self._create_checkpoint_data = create_checkpoint_data
        self._on_checkpoint_discarded = on_checkpoint_discarded
        self._events: EventBusProtocol = event_bus if event_bus is not None else NullEventBus()
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._recovery: RecoveryManager[OptionsT] = RecoveryManager(
            store,
            names,
            validate=self._check_validity,
            should_resume=should_resume,
            on_discarded=self._discard,
        )

    @property
    def step_names(self) -> list[str]:
        return [s.name for s in self._steps]

    @property
    def store(self) -> CheckpointStore:
        return self._store

    def _check_validity(self, checkpoint: Checkpoint, options: OptionsT) -> ValidityCheck:
        try:
            result = self._validate_checkpoint(checkpoint, options)
        except Exception as e:
            raise CheckpointValidationError(f"Cannot check checkpoint saved after step '{checkpoint.step}': {e}") from e
        if isinstance(result, ValidityCheck):
            return result
        if result:
            return ValidityCheck(is_valid=True)
        return ValidityCheck(is_valid=False, reason="Checkpoint no longer matches the current invocation.")

    def _discard(self, check: ValidityCheck) -> None:
        # reason is always set for invalid checks (ValidityCheck invariant)
        reason = check.reason or ""
        if self._on_checkpoint_discarded is not None:
            self._on_checkpoint_discarded(check)
        self._events.emit(CheckpointDiscarded(reason=reason))

    def _start(self, initial_working_set: WorkingSet[Any], options: OptionsT) -> tuple[WorkingSet[Any], int]:
        """Run the startup protocol and return (working set, first step index)."""
        resume_point = self._recovery.find_resume_point(options)
        if resume_point is None:
            return initial_working_set, 0

        checkpoint = resume_point.checkpoint
        try:
            working_set = self._reconstruct(checkpoint.data.state)
        except CheckpointCorruptionError as e:
            logger.warning("Checkpoint state cannot be restored", error=str(e))
            self._discard(ValidityCheck(is_valid=False, reason=str(e)))
            return initial_working_set, 0

        logger.info(
            "Restoring from checkpoint",
            step=checkpoint.step,
            captured_at=checkpoint.captured_at_datetime.isoformat(),
            items=len(working_set),
        )
        self._events.emit(
            CheckpointRestored(
                step=checkpoint.step,
                captured_at=checkpoint.captured_at_datetime,
                item_count=len(working_set),
            )
        )
        return working_set, resume_point.start_index

    def run(self, initial_working_set: WorkingSet[Any], options: OptionsT) -> RunResult:
        """Execute the pipeline, resuming from a valid checkpoint when accepted.

        Step failures, persistence failures and checkpoints that cannot be
        validated are returned as a FAILED RunResult; anything else
        (including KeyboardInterrupt) propagates.

        Args:
            initial_working_set: Items to start from when not resuming
            options: Immutable run configuration passed to every step

        Returns:
            RunResult describing what happened
        """
        started = time.perf_counter()
        working_set = initial_working_set
        completed: list[str] = []
        skipped: tuple[str, ...] = ()
        resumed = False

        def _failed(error: BaseException, failed_step: str | None) -> RunResult:
            return RunResult(
                status=RunStatus.FAILED,
                steps_completed=tuple(completed),
                steps_skipped=skipped,
                resumed=resumed,
                duration_seconds=time.perf_counter() - started,
                failed_step=failed_step,
                error=error,
                working_set=working_set,
            )

        try:
            working_set, start_index = self._start(initial_working_set, options)
        except (CheckpointPersistenceError, CheckpointValidationError) as e:
            logger.error("Stored checkpoint could not be inspected", path=str(self._store.path), error=str(e))
            return _failed(e, None)

        resumed = start_index > 0
        total = len(self._steps)
        skipped = tuple(s.name for s in self._steps[:start_index])
        for index, name in enumerate(skipped):
            self._events.emit(StepSkipped(name=name, index=index))

        for index in range(start_index, total):
            current = self._steps[index]
            log = logger.bind(step=current.name, index=index, total=total)
            self._events.emit(StepStarted(name=current.name, index=index, total=total))
            step_started = time.perf_counter()
            log.info("Step started")

            try:
                result = current.apply(working_set, options)
                if not isinstance(result, WorkingSet):
                    raise TypeError(f"Step must return a WorkingSet, got {type(result).__name__}")
            except Exception as e:
                error = StepFailedError(current.name, e)
                error.__cause__ = e
                log.error("Step failed", error=str(e), error_type=type(e).__name__)
                self._events.emit(StepFailed(name=current.name, index=index, error=error))
                return _failed(error, current.name)

            working_set = result

            try:
                self._save_checkpoint(current, working_set, options)
            except CheckpointPersistenceError as e:
                log.error("Checkpoint could not be saved", error=str(e))
                return _failed(e, None)

            completed.append(current.name)
            duration = time.perf_counter() - step_started
            log.info("Step completed", duration_seconds=round(duration, 3))
            self._events.emit(StepCompleted(name=current.name, index=index, duration_seconds=duration))

        try:
            self._store.clear()
        except CheckpointPersistenceError as e:
            logger.error("Checkpoint could not be removed after completion", error=str(e))
            return _failed(e, None)

        return RunResult(
            status=RunStatus.COMPLETED,
            steps_completed=tuple(completed),
            steps_skipped=skipped,
            resumed=resumed,
            duration_seconds=time.perf_counter() - started,
            working_set=working_set,
        )

    def _save_checkpoint(self, current: Step, working_set: WorkingSet[Any], options: OptionsT) -> None:
        try:
            data = self._create_checkpoint_data(current, working_set, options)
        except Exception as e:
            raise CheckpointPersistenceError(f"Cannot capture checkpoint data after step '{current.name}': {e}") from e
        self._store.save(Checkpoint(captured_at=self._clock.now_ms(), step=current.name, data=data))

    def run_and_exit(self, initial_working_set: WorkingSet[Any], options: OptionsT) -> NoReturn:
        """Run the pipeline, then terminate the process with its exit status.

        This is the only place the process exit is decided.
        """
        result = self.run(initial_working_set, options)

        if result.succeeded:
            logger.info("All steps completed", steps=len(result.steps_completed), skipped=len(result.steps_skipped))
        elif result.failed_step is not None:
            logger.error(
                "Run failed; checkpoint preserved for retry",
                step=result.failed_step,
                checkpoint=str(self._store.path),
                error=str(result.error),
            )
        else:
            logger.error("Run failed outside of a step", error=str(result.error))

        self._events.emit(
            RunFinished(
                status=result.status,
                steps_completed=len(result.steps_completed),
                steps_skipped=len(result.steps_skipped),
                duration_seconds=result.duration_seconds,
                exit_code=result.exit_code,
            )
        )
        raise SystemExit(result.exit_code)

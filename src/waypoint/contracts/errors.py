"""Error contracts for the step runner and checkpoint subsystem.

Taxonomy:
- StepFailedError: a step raised. Fatal to the run, the last checkpoint stays on disk.
- CheckpointPersistenceError: a checkpoint could not be written or removed. Fatal.
- CheckpointCorruptionError: a stored checkpoint could not be decoded.
- CheckpointValidationError: a checkpoint could not be checked against the current state. Fatal.

A stale checkpoint is NOT an exception - it is reported through
ValidityCheck(is_valid=False, reason=...) and handled by starting over.
"""


class WaypointError(Exception):
    """Base class for all waypoint errors."""


class StepFailedError(WaypointError):
    """Raised (or returned in RunResult) when a step's work fails.

    The original exception is chained as ``__cause__`` and kept on
    ``cause`` so formatters don't need to walk the chain.

    Attributes:
        step_name: Name of the step that failed
        cause: The exception the step raised
    """

    def __init__(self, step_name: str, cause: BaseException) -> None:
        self.step_name = step_name
        self.cause = cause
        super().__init__(f"Step '{step_name}' failed: {cause}. The last checkpoint has been preserved, re-run with retry to resume.")


class CheckpointPersistenceError(WaypointError):
    """Raised when a checkpoint cannot be saved or cleared.

    Never swallowed: continuing after a failed save would make the
    run claim progress that was never durably recorded.
    """


class CheckpointCorruptionError(WaypointError):
    """Raised when a stored checkpoint record is unreadable or ill-formed."""


class CheckpointValidationError(WaypointError):
    """Raised when the validity of a stored checkpoint cannot be determined.

    Typically the current external reference (e.g. the git head) could not
    be read. The run fails instead of starting over.
    """

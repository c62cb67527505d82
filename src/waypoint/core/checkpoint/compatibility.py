"""Checkpoint validity policy for resume operations.

Decides whether a found checkpoint still corresponds to the current
invocation. A checkpoint is valid if:
1. It was written in the current record format
2. Its external reference (e.g. VCS head) equals the current one
3. Its options snapshot is structurally equal to the backupable subset
   of the current options

Options outside the backupable subset (e.g. a dry-run toggle) never
affect validity.
"""

from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

import structlog
from deepdiff import DeepDiff

from waypoint.contracts import Checkpoint, ValidityCheck

OptionsT = TypeVar("OptionsT")


class CheckpointValidator(Generic[OptionsT]):
    """Default validity policy: same external reference, same backupable options.

    Example:
        validator = CheckpointValidator(
            current_reference=git.head_commit_hash,
            backupable=pick_backupable_options,
        )
        check = validator.validate(checkpoint, options)
    """

    def __init__(
        self,
        current_reference: Callable[[], str],
        backupable: Callable[[OptionsT], Mapping[str, Any]],
    ) -> None:
        """Initialize validator.

        Args:
            current_reference: Returns the current external reference token
            backupable: Extracts the comparable subset of the run options
        """
        self._current_reference = current_reference
        self._backupable = backupable
        self._logger = structlog.get_logger(__name__)

    def validate(self, checkpoint: Checkpoint, options: OptionsT) -> ValidityCheck:
        """Validate ``checkpoint`` against the current invocation.

        Returns:
            ValidityCheck with is_valid=True if the checkpoint may be resumed,
            or is_valid=False with the specific reason if not.
        """
        if checkpoint.format_version != Checkpoint.CURRENT_FORMAT_VERSION:
            return ValidityCheck(
                is_valid=False,
                reason=f"Checkpoint has incompatible format version "
                f"(checkpoint: v{checkpoint.format_version}, current: v{Checkpoint.CURRENT_FORMAT_VERSION}).",
            )

        current_head = self._current_reference()
        if checkpoint.data.head != current_head:
            return ValidityCheck(
                is_valid=False,
                reason=f"Repository state has moved on since the checkpoint was saved "
                f"(checkpoint head: {checkpoint.data.head[:12]}, current head: {current_head[:12]}).",
            )

        diff = DeepDiff(dict(self._backupable(options)), checkpoint.data.options)
        if diff:
            changed = ", ".join(sorted(str(path) for path in diff.affected_paths))
            self._logger.debug("Checkpoint options differ", diff=diff.to_dict())
            return ValidityCheck(
                is_valid=False,
                reason=f"Options differ from the run that saved the checkpoint (changed: {changed}).",
            )

        return ValidityCheck(is_valid=True)

    def is_valid(self, checkpoint: Checkpoint, options: OptionsT) -> bool:
        return self.validate(checkpoint, options).is_valid

"""Resume decisions: should a valid checkpoint actually be used?

Two implementations of the same contract:
- AutomaticResumeDecision: answers from a flag (e.g. ``--retry``)
- InteractiveResumeDecision: asks the operator

Declining never deletes the checkpoint; a later run may still want it.
"""

from collections.abc import Callable
from typing import Protocol

import structlog
import typer

from waypoint.contracts import Checkpoint

logger = structlog.get_logger(__name__)


class ResumeDecision(Protocol):
    """Decides whether a *valid* checkpoint should be resumed."""

    def should_resume(self, checkpoint: Checkpoint) -> bool: ...


class AutomaticResumeDecision:
    """Flag-driven decision that never prompts."""

    def __init__(self, accept: bool = True) -> None:
        self._accept = accept

    def should_resume(self, checkpoint: Checkpoint) -> bool:
        logger.debug("Automatic resume decision", accept=self._accept, step=checkpoint.step)
        return self._accept


class InteractiveResumeDecision:
    """Asks the operator whether to resume from the checkpoint.

    Args:
        confirm: Prompt callable returning the answer (default: typer.confirm)
    """

    def __init__(self, confirm: Callable[..., bool] = typer.confirm) -> None:
        self._confirm = confirm

    def should_resume(self, checkpoint: Checkpoint) -> bool:
        captured = checkpoint.captured_at_datetime.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        answer = self._confirm(
            f"Found valid checkpoint saved on {captured} after step '{checkpoint.step}'. Would you like to use it?",
            default=True,
        )
        return bool(answer)


def resume_decision(*, retry: bool, interactive: bool) -> ResumeDecision:
    """Pick the resume decision for an invocation.

    ``retry`` always resumes without asking. Otherwise the operator is
    asked when interactive; non-interactive runs start over.
    """
    if retry:
        return AutomaticResumeDecision(accept=True)
    if interactive:
        return InteractiveResumeDecision()
    return AutomaticResumeDecision(accept=False)

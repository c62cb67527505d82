"""Step protocol and function adapters.

A step is a named, fallible transformation of the working set:

    (working_set, options) -> working_set

Steps raise ordinary exceptions on failure; the runner turns them into
StepFailedError and halts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from waypoint.contracts import WorkingSet

StepFunction = Callable[[WorkingSet[Any], Any], WorkingSet[Any]]


@runtime_checkable
class Step(Protocol):
    """One ordered unit of work.

    ``name`` is persisted in checkpoints to derive the resume position,
    so renaming a step invalidates existing checkpoints that reference it.
    """

    name: str

    def apply(self, working_set: WorkingSet[Any], options: Any) -> WorkingSet[Any]: ...


@dataclass(frozen=True)
class FunctionStep:
    """Adapter turning a plain function into a Step."""

    name: str
    fn: StepFunction
    description: str = ""

    def apply(self, working_set: WorkingSet[Any], options: Any) -> WorkingSet[Any]:
        return self.fn(working_set, options)


def step(name: str | None = None) -> Callable[[StepFunction], FunctionStep]:
    """Decorator registering a function as a FunctionStep.

    Example:
        @step()
        def update_versions(parcels, options):
            ...
            return parcels
    """

    def decorator(fn: StepFunction) -> FunctionStep:
        doc = (fn.__doc__ or "").strip().splitlines()
        return FunctionStep(name=name or fn.__name__, fn=fn, description=doc[0] if doc else "")

    return decorator

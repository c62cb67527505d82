"""Step execution engine."""

from waypoint.engine.runner import TaskRunner
from waypoint.engine.steps import FunctionStep, Step, step

__all__ = [
    "FunctionStep",
    "Step",
    "TaskRunner",
    "step",
]

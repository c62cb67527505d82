"""
waypoint: resumable, checkpointed step runner for multi-phase operations.

Runs an ordered sequence of steps that mutate hard-to-undo external state
(git history, a package registry, generated files), saves a checkpoint
after every step and resumes from it on the next invocation.
"""

__version__ = "0.1.0"

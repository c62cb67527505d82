"""Thin git wrapper used by the publish workflow.

The head commit hash is the external reference stored in checkpoints:
a checkpoint saved at another commit is stale.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


class GitError(Exception):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.command = ["git", *args]
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"`{' '.join(self.command)}` failed with exit code {returncode}: {stderr.strip()}")


class Git:
    """Runs git commands in a work tree."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def run(self, *args: str) -> str:
        """Run ``git <args>`` and return stdout.

        Raises:
            GitError: On non-zero exit status
        """
        logger.debug("Running git", args=list(args), cwd=str(self._root))
        result = subprocess.run(
            ["git", *args],
            cwd=self._root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise GitError(args, result.returncode, result.stderr)
        return result.stdout

    def head_commit_hash(self) -> str:
        return self.run("rev-parse", "HEAD").strip()

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").strip()

    def has_uncommitted_changes(self) -> bool:
        """Whether tracked files have staged or unstaged modifications.

        Untracked files are ignored so that the checkpoint file itself
        never blocks a run.
        """
        return bool(self.run("status", "--porcelain", "--untracked-files=no").strip())

    def has_staged_changes(self) -> bool:
        return bool(self.run("diff", "--cached", "--name-only").strip())

    def add(self, paths: Sequence[Path]) -> None:
        if paths:
            self.run("add", "--", *(str(p) for p in paths))

    def commit(self, message: str) -> None:
        self.run("commit", "--message", message)

    def push(self) -> None:
        self.run("push")

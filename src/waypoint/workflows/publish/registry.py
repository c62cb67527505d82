"""Thin npm registry wrapper used by the publish workflow.

Every query goes to the registry itself, never to local state, so steps
that already reached the registry can be re-run safely: a version the
registry already has is not published again.
"""

from __future__ import annotations

import json
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_NOT_FOUND_CODE = "E404"


class RegistryError(Exception):
    """Raised when a registry command exits with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"`{' '.join(self.command)}` failed with exit code {returncode}: {stderr.strip()}")

    @property
    def not_found(self) -> bool:
        return _NOT_FOUND_CODE in self.stderr


class Registry:
    """Runs npm commands against the package registry.

    Args:
        command: Executable prefix, ``("npm",)`` unless configured otherwise
    """

    def __init__(self, command: Sequence[str] = ("npm",)) -> None:
        if not command:
            raise ValueError("registry command cannot be empty")
        self._command = tuple(command)

    def run(self, *args: str, cwd: Path | None = None) -> str:
        """Run ``<command> <args>`` and return stdout.

        Raises:
            RegistryError: On non-zero exit status
        """
        command = [*self._command, *args]
        logger.debug("Running registry command", command=command, cwd=str(cwd) if cwd else None)
        result = subprocess.run(command, cwd=cwd, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            raise RegistryError(command, result.returncode, result.stderr)
        return result.stdout

    def _view(self, name: str, field: str) -> Any:
        try:
            output = self.run("view", name, field, "--json")
        except RegistryError as e:
            if e.not_found:
                return None
            raise
        return json.loads(output) if output.strip() else None

    def published_versions(self, name: str) -> list[str]:
        """Versions of ``name`` in the registry; empty if it was never published."""
        versions = self._view(name, "versions")
        if versions is None:
            return []
        # npm prints a bare string when there is exactly one version
        return [versions] if isinstance(versions, str) else list(versions)

    def is_published(self, name: str, version: str) -> bool:
        return version in self.published_versions(name)

    def publish(self, package_path: Path, tag: str) -> None:
        self.run("publish", "--tag", tag, cwd=package_path)

    def maintainers(self, name: str) -> list[str]:
        """Usernames of the package maintainers; empty if it was never published."""
        maintainers = self._view(name, "maintainers")
        if maintainers is None:
            return []
        if isinstance(maintainers, str | dict):
            maintainers = [maintainers]
        # Entries are "user <email>" strings or {"name": ..., "email": ...} objects
        return [m["name"] if isinstance(m, dict) else m.split(" ", 1)[0] for m in maintainers]

    def team_members(self, team: str) -> list[str]:
        """Usernames in ``team`` (``<org>:<team>``)."""
        return list(json.loads(self.run("team", "ls", team, "--json")))

    def grant_access(self, team: str, name: str) -> None:
        self.run("access", "grant", "read-write", team, name)

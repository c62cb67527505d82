"""Status codes used across subsystem boundaries."""

from enum import StrEnum


class RunStatus(StrEnum):
    """Final status of a runner invocation."""

    COMPLETED = "completed"
    FAILED = "failed"


class ReleaseType(StrEnum):
    """Semver component bumped by a publish.

    Stored in checkpoint per-item state (parcel state).
    """

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"

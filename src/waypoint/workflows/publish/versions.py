"""Semantic version bumping for publish releases."""

import re
from dataclasses import dataclass

from waypoint.contracts import ReleaseType

_SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: str) -> "Version":
        """Parse a semver string; build metadata is dropped.

        Raises:
            ValueError: If ``value`` is not a valid semantic version
        """
        match = _SEMVER_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid semantic version: {value!r}")
        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
        )

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{'.'.join(self.prerelease)}" if self.prerelease else core


def bump_version(version: str, release_type: ReleaseType, prerelease_id: str | None = None) -> str:
    """Compute the next version.

    Prerelease bumps continue an existing prerelease with the same
    identifier (1.2.0-rc.0 -> 1.2.0-rc.1); otherwise they start one on
    the next patch (1.2.0 -> 1.2.1-rc.0).

    Raises:
        ValueError: If ``version`` is invalid or a prerelease bump lacks an identifier
    """
    current = Version.parse(version)

    if release_type == ReleaseType.PRERELEASE:
        if not prerelease_id:
            raise ValueError("prerelease bump requires an identifier")
        pre = current.prerelease
        if len(pre) == 2 and pre[0] == prerelease_id and pre[1].isdigit():
            return str(Version(current.major, current.minor, current.patch, (prerelease_id, str(int(pre[1]) + 1))))
        base = current if pre else Version(current.major, current.minor, current.patch + 1)
        return str(Version(base.major, base.minor, base.patch, (prerelease_id, "0")))

    # Releasing a prerelease finalizes it at its own core version
    if current.prerelease:
        finalized = Version(current.major, current.minor, current.patch)
        if release_type == ReleaseType.PATCH or (release_type == ReleaseType.MINOR and current.patch == 0) or (
            release_type == ReleaseType.MAJOR and current.minor == 0 and current.patch == 0
        ):
            return str(finalized)

    if release_type == ReleaseType.MAJOR:
        return str(Version(current.major + 1, 0, 0))
    if release_type == ReleaseType.MINOR:
        return str(Version(current.major, current.minor + 1, 0))
    return str(Version(current.major, current.minor, current.patch + 1))

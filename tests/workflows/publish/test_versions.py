# tests/workflows/publish/test_versions.py
"""Tests for semantic version bumping."""

import pytest

from waypoint.contracts import ReleaseType
from waypoint.workflows.publish.versions import Version, bump_version


class TestVersion:
    """Tests for parsing and formatting."""

    def test_parse_release(self) -> None:
        assert Version.parse("1.2.3") == Version(1, 2, 3)

    def test_parse_prerelease_and_drop_build(self) -> None:
        version = Version.parse("1.2.3-rc.4+sha.abc")

        assert version.prerelease == ("rc", "4")
        assert str(version) == "1.2.3-rc.4"

    @pytest.mark.parametrize("value", ["1.2", "v1.2.3", "01.2.3", "1.2.3-", ""])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError, match="Invalid semantic version"):
            Version.parse(value)


class TestBumpVersion:
    """Tests for release version computation."""

    @pytest.mark.parametrize(
        ("current", "release_type", "expected"),
        [
            ("1.2.3", ReleaseType.PATCH, "1.2.4"),
            ("1.2.3", ReleaseType.MINOR, "1.3.0"),
            ("1.2.3", ReleaseType.MAJOR, "2.0.0"),
            ("0.9.9", ReleaseType.MAJOR, "1.0.0"),
        ],
    )
    def test_release_bumps(self, current: str, release_type: ReleaseType, expected: str) -> None:
        assert bump_version(current, release_type) == expected

    def test_prerelease_starts_on_next_patch(self) -> None:
        assert bump_version("1.2.3", ReleaseType.PRERELEASE, "rc") == "1.2.4-rc.0"

    def test_prerelease_continues_same_identifier(self) -> None:
        assert bump_version("1.2.4-rc.0", ReleaseType.PRERELEASE, "rc") == "1.2.4-rc.1"

    def test_prerelease_switches_identifier(self) -> None:
        assert bump_version("1.2.4-beta.3", ReleaseType.PRERELEASE, "rc") == "1.2.4-rc.0"

    def test_prerelease_requires_identifier(self) -> None:
        with pytest.raises(ValueError, match="requires an identifier"):
            bump_version("1.2.3", ReleaseType.PRERELEASE)

    @pytest.mark.parametrize(
        ("current", "release_type", "expected"),
        [
            ("1.2.4-rc.1", ReleaseType.PATCH, "1.2.4"),
            ("1.3.0-rc.1", ReleaseType.MINOR, "1.3.0"),
            ("2.0.0-rc.0", ReleaseType.MAJOR, "2.0.0"),
            ("1.2.4-rc.0", ReleaseType.MINOR, "1.3.0"),
            ("1.2.4-rc.0", ReleaseType.MAJOR, "2.0.0"),
        ],
    )
    def test_releasing_a_prerelease(self, current: str, release_type: ReleaseType, expected: str) -> None:
        """A prerelease is finalized when its core already satisfies the release type."""
        assert bump_version(current, release_type) == expected

# tests/workflows/publish/test_options.py
"""Tests for publish options and their backupable subset."""

import pytest
from pydantic import ValidationError

from waypoint.workflows.publish.options import BACKUPABLE_OPTIONS, PublishOptions, pick_backupable_options


class TestPublishOptions:
    """Tests for option validation."""

    def test_defaults(self) -> None:
        options = PublishOptions()

        assert options.tag == "next"
        assert options.prerelease is None
        assert not options.retry
        assert not options.grant_access

    def test_frozen(self) -> None:
        options = PublishOptions()
        with pytest.raises(ValidationError):
            options.tag = "latest"  # type: ignore[misc]

    @pytest.mark.parametrize("field", ["tag", "commit_message"])
    def test_blank_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            PublishOptions(**{field: "   "})

    @pytest.mark.parametrize("prerelease", ["rc", "beta", "canary-2"])
    def test_valid_prerelease(self, prerelease: str) -> None:
        assert PublishOptions(prerelease=prerelease).prerelease == prerelease

    @pytest.mark.parametrize("prerelease", ["rc.1", "", "with space"])
    def test_invalid_prerelease(self, prerelease: str) -> None:
        with pytest.raises(ValidationError):
            PublishOptions(prerelease=prerelease)


class TestBackupableOptions:
    """Tests for the subset compared against checkpoints."""

    def test_only_backupable_fields_picked(self) -> None:
        picked = pick_backupable_options(PublishOptions(dry=True, retry=True, package_names=("expo-image",)))

        assert set(picked) == BACKUPABLE_OPTIONS
        assert picked["package_names"] == ["expo-image"]

    def test_excluded_fields_do_not_change_snapshot(self) -> None:
        """Run modes and repo checks never invalidate a checkpoint."""
        base = pick_backupable_options(PublishOptions())
        toggled = pick_backupable_options(
            PublishOptions(dry=True, retry=True, skip_repo_checks=True, list_unpublished=True, grant_access=True)
        )

        assert base == toggled

    def test_snapshot_is_json_compatible(self) -> None:
        picked = pick_backupable_options(PublishOptions(exclude=("a", "b"), prerelease="rc"))

        assert picked == {
            "package_names": [],
            "exclude": ["a", "b"],
            "prerelease": "rc",
            "tag": "next",
            "commit_message": "Publish packages",
            "exclude_deps": False,
        }

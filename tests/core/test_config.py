# tests/core/test_config.py
"""Tests for configuration schema and loading."""

from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError


class TestCheckpointSettings:
    """Tests for checkpoint configuration."""

    def test_defaults(self) -> None:
        from waypoint.core.config import CheckpointSettings

        settings = CheckpointSettings()
        assert settings.path == Path(".waypoint/publish-checkpoint.json")
        assert settings.expiration_hours == 24
        assert settings.expiration == timedelta(hours=24)

    def test_expiration_must_be_positive(self) -> None:
        from waypoint.core.config import CheckpointSettings

        with pytest.raises(ValidationError):
            CheckpointSettings(expiration_hours=0)

    def test_settings_are_frozen(self) -> None:
        from waypoint.core.config import CheckpointSettings

        settings = CheckpointSettings()
        with pytest.raises(ValidationError):
            settings.expiration_hours = 1  # type: ignore[misc]


class TestWorkspaceSettings:
    """Tests for workspace layout configuration."""

    def test_packages_path(self) -> None:
        from waypoint.core.config import WorkspaceSettings

        settings = WorkspaceSettings(root=Path("/repo"), packages_dir="libs")
        assert settings.packages_path == Path("/repo/libs")

    @pytest.mark.parametrize("packages_dir", ["", "  ", "/abs/packages"])
    def test_packages_dir_validation(self, packages_dir: str) -> None:
        from waypoint.core.config import WorkspaceSettings

        with pytest.raises(ValidationError):
            WorkspaceSettings(packages_dir=packages_dir)

    def test_release_branch_defaults_to_main(self) -> None:
        from waypoint.core.config import WorkspaceSettings

        assert WorkspaceSettings().release_branch == "main"
        with pytest.raises(ValidationError):
            WorkspaceSettings(release_branch=" ")


class TestRegistrySettings:
    """Tests for registry access configuration."""

    def test_defaults(self) -> None:
        from waypoint.core.config import RegistrySettings

        settings = RegistrySettings()
        assert settings.command == ("npm",)
        assert settings.team == "expo:developers"

    def test_empty_command_rejected(self) -> None:
        from waypoint.core.config import RegistrySettings

        with pytest.raises(ValidationError):
            RegistrySettings(command=())

    def test_team_needs_organization(self) -> None:
        from waypoint.core.config import RegistrySettings

        with pytest.raises(ValidationError, match="<org>:<team>"):
            RegistrySettings(team="developers")


class TestWaypointSettings:
    """Tests for top-level settings."""

    def test_relative_checkpoint_path_resolves_against_root(self) -> None:
        from waypoint.core.config import WaypointSettings

        settings = WaypointSettings(workspace={"root": "/repo"})
        assert settings.checkpoint_path == Path("/repo/.waypoint/publish-checkpoint.json")

    def test_absolute_checkpoint_path_kept(self) -> None:
        from waypoint.core.config import WaypointSettings

        settings = WaypointSettings(workspace={"root": "/repo"}, checkpoint={"path": "/tmp/cp.json"})
        assert settings.checkpoint_path == Path("/tmp/cp.json")

    def test_log_level_normalized(self) -> None:
        from waypoint.core.config import LoggingSettings

        assert LoggingSettings(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingSettings(level="chatty")


class TestLoadSettings:
    """Tests for Dynaconf-backed loading."""

    def test_load_defaults_without_file(self) -> None:
        from waypoint.core.config import load_settings

        settings = load_settings()
        assert settings.checkpoint.expiration_hours == 24
        assert settings.workspace.packages_dir == "packages"

    def test_load_from_yaml_file(self, tmp_path: Path) -> None:
        from waypoint.core.config import load_settings

        config_file = tmp_path / "waypoint.yaml"
        config_file.write_text("""
checkpoint:
  path: state/checkpoint.json
  expiration_hours: 6

workspace:
  root: /srv/monorepo
  packages_dir: libs
  release_branch: release

registry:
  command: [pnpm, --silent]
  team: acme:maintainers

logging:
  level: warning
""")
        settings = load_settings(config_file)

        assert settings.checkpoint.expiration == timedelta(hours=6)
        assert settings.checkpoint_path == Path("/srv/monorepo/state/checkpoint.json")
        assert settings.workspace.packages_path == Path("/srv/monorepo/libs")
        assert settings.workspace.release_branch == "release"
        assert settings.registry.command == ("pnpm", "--silent")
        assert settings.registry.team == "acme:maintainers"
        assert settings.logging.level == "WARNING"

    def test_load_with_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """WAYPOINT_* environment variables take precedence over the file."""
        from waypoint.core.config import load_settings

        config_file = tmp_path / "waypoint.yaml"
        config_file.write_text("""
checkpoint:
  expiration_hours: 6
""")
        monkeypatch.setenv("WAYPOINT_CHECKPOINT__EXPIRATION_HOURS", "2")

        settings = load_settings(config_file)
        assert settings.checkpoint.expiration_hours == 2

    def test_env_var_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """${VAR} and ${VAR:-default} are expanded in values."""
        from waypoint.core.config import load_settings

        config_file = tmp_path / "waypoint.yaml"
        config_file.write_text("""
workspace:
  root: ${MONOREPO_ROOT}
  packages_dir: ${PACKAGES_DIR:-packages}
""")
        monkeypatch.setenv("MONOREPO_ROOT", "/work/repo")
        monkeypatch.delenv("PACKAGES_DIR", raising=False)

        settings = load_settings(config_file)
        assert settings.workspace.root == Path("/work/repo")
        assert settings.workspace.packages_dir == "packages"

    def test_load_validates_schema(self, tmp_path: Path) -> None:
        from waypoint.core.config import load_settings

        config_file = tmp_path / "waypoint.yaml"
        config_file.write_text("""
checkpoint:
  expiration_hours: -1
""")
        with pytest.raises(ValidationError):
            load_settings(config_file)

    def test_load_missing_file_raises_file_not_found(self, tmp_path: Path) -> None:
        from waypoint.core.config import load_settings

        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

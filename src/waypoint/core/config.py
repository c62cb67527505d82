# src/waypoint/core/config.py
"""
Configuration schema and loading for waypoint.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# Default location of the settings file looked up by the CLI
DEFAULT_SETTINGS_FILE = Path("waypoint.yaml")

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class CheckpointSettings(BaseModel):
    """Where checkpoints are stored and how long they stay usable.

    A checkpoint older than ``expiration_hours`` is treated exactly as if
    no checkpoint existed. It is not deleted; the next save supersedes it.
    """

    model_config = {"frozen": True}

    path: Path = Field(
        default=Path(".waypoint/publish-checkpoint.json"),
        description="Checkpoint file, relative paths resolve against the workspace root",
    )
    expiration_hours: float = Field(default=24.0, gt=0, description="Checkpoint freshness window")

    @property
    def expiration(self) -> timedelta:
        return timedelta(hours=self.expiration_hours)


class WorkspaceSettings(BaseModel):
    """Layout of the repository the publish workflow operates on."""

    model_config = {"frozen": True}

    root: Path = Field(default=Path("."), description="Repository root (git work tree)")
    packages_dir: str = Field(default="packages", description="Directory holding one sub-directory per package")
    release_branch: str = Field(default="main", description="Branch publishes must run from")

    @field_validator("release_branch")
    @classmethod
    def validate_release_branch(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("release_branch cannot be empty")
        return v

    @field_validator("packages_dir")
    @classmethod
    def validate_packages_dir(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("packages_dir cannot be empty")
        if Path(v).is_absolute():
            raise ValueError("packages_dir must be relative to the workspace root")
        return v

    @property
    def packages_path(self) -> Path:
        return self.root / self.packages_dir


class RegistrySettings(BaseModel):
    """Package registry access."""

    model_config = {"frozen": True}

    command: tuple[str, ...] = Field(default=("npm",), description="npm executable and leading arguments")
    team: str = Field(default="expo:developers", description="Organization team granted access to published packages")

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("command cannot be empty")
        return v

    @field_validator("team")
    @classmethod
    def validate_team(cls, v: str) -> str:
        if ":" not in v:
            raise ValueError("team must be '<org>:<team>'")
        return v


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class WaypointSettings(BaseModel):
    """Top-level settings."""

    model_config = {"frozen": True}

    checkpoint: CheckpointSettings = Field(default_factory=CheckpointSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def checkpoint_path(self) -> Path:
        """Checkpoint path, resolved against the workspace root when relative."""
        if self.checkpoint.path.is_absolute():
            return self.checkpoint.path
        return self.workspace.root / self.checkpoint.path


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""
    import os

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            # No env var and no default - keep original (validation will report it)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lowercase_keys(value: Any) -> Any:
    # Dynaconf uppercases top-level keys and keeps env-derived nested keys as given
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path | None = None) -> WaypointSettings:
    """Load settings from an optional YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (WAYPOINT_*) - highest priority
    2. Config file (waypoint.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: WAYPOINT_CHECKPOINT__EXPIRATION_HOURS for nested keys.

    Args:
        config_path: Path to YAML configuration file, or None for env + defaults only

    Returns:
        Validated WaypointSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If an explicit config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="WAYPOINT",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _lowercase_keys(raw_config)
    raw_config = _expand_env_vars(raw_config)

    return WaypointSettings(**raw_config)

"""Publish command options.

Only the fields listed in BACKUPABLE_OPTIONS take part in checkpoint
validity: changing any of them between invocations discards the
checkpoint, changing any other field (dry run, retry...) does not.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

# Explicit allow-list of options compared against the checkpoint snapshot
BACKUPABLE_OPTIONS: frozenset[str] = frozenset(
    {
        "package_names",
        "exclude",
        "prerelease",
        "tag",
        "commit_message",
        "exclude_deps",
    }
)

DEFAULT_PRERELEASE_IDENTIFIER = "rc"


class PublishOptions(BaseModel):
    """Immutable run configuration of the publish workflow."""

    model_config = {"frozen": True}

    package_names: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    prerelease: str | None = Field(default=None, description="Prerelease identifier, e.g. 'rc'")
    tag: str = Field(default="next", description="Registry dist-tag passed to the publish command")
    commit_message: str = "Publish packages"
    exclude_deps: bool = False
    skip_repo_checks: bool = False
    dry: bool = False
    retry: bool = False
    list_unpublished: bool = False
    grant_access: bool = False

    @field_validator("tag", "commit_message")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("prerelease")
    @classmethod
    def validate_prerelease(cls, v: str | None) -> str | None:
        if v is not None and not v.replace("-", "").isalnum():
            raise ValueError(f"invalid prerelease identifier: {v!r}")
        return v


def pick_backupable_options(options: PublishOptions) -> dict[str, Any]:
    """JSON-compatible snapshot of the backupable subset of ``options``."""
    return options.model_dump(mode="json", include=set(BACKUPABLE_OPTIONS))

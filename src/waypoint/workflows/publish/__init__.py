"""Publish workflow: version, changelog, commit, push and publish workspace packages.

Import patterns:
    from waypoint.workflows.publish import PublishOptions, build_publish_runner
"""

from waypoint.workflows.publish.git import Git, GitError
from waypoint.workflows.publish.options import BACKUPABLE_OPTIONS, PublishOptions, pick_backupable_options
from waypoint.workflows.publish.packages import Package, discover_packages
from waypoint.workflows.publish.registry import Registry, RegistryError
from waypoint.workflows.publish.state import Parcel, ParcelState
from waypoint.workflows.publish.tasks import (
    PUBLISH_STEPS,
    PackageSelectionError,
    PublishContext,
    RepositoryStateError,
    build_publish_steps,
    grant_missing_access,
    select_package_names,
)
from waypoint.workflows.publish.workflow import (
    UnpublishedPackage,
    build_publish_runner,
    create_context,
    grant_access,
    list_unpublished,
)

__all__ = [
    "BACKUPABLE_OPTIONS",
    "PUBLISH_STEPS",
    "Git",
    "GitError",
    "Package",
    "PackageSelectionError",
    "Parcel",
    "ParcelState",
    "PublishContext",
    "PublishOptions",
    "Registry",
    "RegistryError",
    "RepositoryStateError",
    "UnpublishedPackage",
    "build_publish_runner",
    "build_publish_steps",
    "create_context",
    "discover_packages",
    "grant_access",
    "grant_missing_access",
    "list_unpublished",
    "pick_backupable_options",
    "select_package_names",
]

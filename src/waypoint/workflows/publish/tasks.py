"""Steps of the publish workflow.

Each step takes the shared PublishContext first; build_publish_steps()
binds it so the runner sees the plain (parcels, options) signature.
Steps raise on failure and never catch their own errors.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from functools import partial

import structlog

from waypoint.contracts import ReleaseType, WorkingSet
from waypoint.engine.steps import FunctionStep
from waypoint.workflows.publish.git import Git
from waypoint.workflows.publish.options import PublishOptions
from waypoint.workflows.publish.packages import (
    Package,
    cut_off_changelog,
    has_unpublished_changes,
    suggested_release_type,
    write_manifest_version,
)
from waypoint.workflows.publish.registry import Registry
from waypoint.workflows.publish.state import Parcel, ParcelState
from waypoint.workflows.publish.versions import bump_version

logger = structlog.get_logger(__name__)

Parcels = WorkingSet[ParcelState]


class RepositoryStateError(Exception):
    """Raised when the repository is not in a state the publish can start from."""


class PackageSelectionError(ValueError):
    """Raised when the requested packages cannot be selected."""


@dataclass
class PublishContext:
    """Collaborators shared by all publish steps.

    Attributes:
        git: Git wrapper for the workspace
        packages: All workspace packages keyed by name
        registry: npm registry wrapper
        release_branch: Branch publishes must start from
        access_team: Team (``<org>:<team>``) granted access to published packages
        today: Date used in changelog headings
        now: Timestamp recorded when a package is published
    """

    git: Git
    packages: dict[str, Package]
    registry: Registry = field(default_factory=Registry)
    release_branch: str = "main"
    access_team: str = "expo:developers"
    today: Callable[[], date] = date.today
    now: Callable[[], datetime] = field(default=lambda: datetime.now(UTC))

    def package(self, name: str) -> Package:
        return self.packages[name]


def select_package_names(packages: dict[str, Package], options: PublishOptions) -> list[str]:
    """Names of the packages a publish targets, in package order.

    Explicit names pull in their workspace dependencies that have
    unpublished changes unless ``exclude_deps`` is set. Without explicit
    names, every package with unpublished changes is selected. Exclusions
    always win.

    Raises:
        PackageSelectionError: If an explicit or excluded name is unknown
    """
    unknown = sorted(set(options.package_names) - packages.keys())
    if unknown:
        raise PackageSelectionError(f"Unknown packages: {', '.join(unknown)}")
    unknown_excluded = sorted(set(options.exclude) - packages.keys())
    if unknown_excluded:
        raise PackageSelectionError(f"Unknown packages to exclude: {', '.join(unknown_excluded)}")

    if options.package_names:
        selected = set(options.package_names)
        if not options.exclude_deps:
            selected |= _dependencies_with_changes(packages, options.package_names)
    else:
        selected = {name for name, package in packages.items() if has_unpublished_changes(package)}

    selected -= set(options.exclude)
    return [name for name in sorted(packages) if name in selected]


def _dependencies_with_changes(packages: dict[str, Package], roots: Iterable[str]) -> set[str]:
    found: set[str] = set()
    pending = list(roots)
    while pending:
        for dependency in packages[pending.pop()].dependencies:
            if dependency in packages and dependency not in found and has_unpublished_changes(packages[dependency]):
                found.add(dependency)
                pending.append(dependency)
    return found


def check_repository_status(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Checks the release branch is checked out with no uncommitted changes."""
    if options.skip_repo_checks:
        logger.warning("Skipping repository checks")
        return parcels
    branch = context.git.current_branch()
    if branch != context.release_branch:
        raise RepositoryStateError(
            f"Publishing is only allowed from '{context.release_branch}', but '{branch}' is checked out."
        )
    if context.git.has_uncommitted_changes():
        raise RepositoryStateError("Repository has uncommitted changes. Commit or stash them before publishing.")
    return parcels


def prepare_parcels(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Selects the packages to publish."""
    names = select_package_names(context.packages, options)
    if not names:
        raise PackageSelectionError("No packages selected for publishing.")
    logger.info("Selected packages", packages=names)
    return WorkingSet(Parcel(key=name, state=ParcelState(current_version=context.package(name).version)) for name in names)


def resolve_release_versions(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Computes the release type and version of every package."""
    for parcel in parcels:
        if options.prerelease is not None:
            release_type = ReleaseType.PRERELEASE
        else:
            release_type = suggested_release_type(context.package(parcel.key))
        parcel.state.release_type = release_type
        parcel.state.release_version = bump_version(parcel.state.current_version, release_type, options.prerelease)
        logger.info(
            "Resolved release version",
            package=parcel.key,
            current=parcel.state.current_version,
            release=parcel.state.release_version,
            release_type=release_type.value,
        )
    return parcels


def _release_version(parcel: Parcel) -> str:
    if parcel.state.release_version is None:
        raise RuntimeError(f"Package '{parcel.key}' has no release version; resolve_release_versions must run first")
    return parcel.state.release_version


def update_versions(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Writes release versions into package manifests and stages them."""
    for parcel in parcels:
        package = context.package(parcel.key)
        write_manifest_version(package, _release_version(parcel))
        context.git.add([package.manifest_path])
    return parcels


def cut_off_changelogs(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Moves unpublished changelog entries under the release version."""
    for parcel in parcels:
        package = context.package(parcel.key)
        if cut_off_changelog(package, _release_version(parcel), context.today()):
            context.git.add([package.changelog_path])
            parcel.state.changelog_cut = True
        else:
            logger.info("No unpublished changelog section", package=parcel.key)
    return parcels


def commit_staged_changes(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Commits the staged version and changelog changes."""
    if not context.git.has_staged_changes():
        logger.info("Nothing to commit")
        return parcels
    released = "\n".join(f"- {parcel.key}@{_release_version(parcel)}" for parcel in parcels)
    context.git.commit(f"{options.commit_message}\n\n{released}")
    for parcel in parcels:
        parcel.state.committed = True
    return parcels


def push_committed_changes(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Pushes the publish commit to the remote."""
    if options.dry:
        logger.info("Dry run, not pushing")
        return parcels
    context.git.push()
    return parcels


def publish_packages(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Publishes every package version the registry does not have yet."""
    for parcel in parcels:
        if parcel.state.published:
            logger.info("Already published", package=parcel.key)
            continue
        version = _release_version(parcel)
        if options.dry:
            logger.info("Dry run, not publishing", package=parcel.key, version=version, tag=options.tag)
            continue
        if context.registry.is_published(parcel.key, version):
            logger.info("Version already in the registry", package=parcel.key, version=version)
        else:
            logger.info("Publishing", package=parcel.key, version=version, tag=options.tag)
            context.registry.publish(context.package(parcel.key).path, options.tag)
        parcel.state.published = True
        parcel.state.published_at = context.now()
    return parcels


def grant_missing_access(registry: Registry, team: str, names: Iterable[str], *, dry: bool = False) -> list[str]:
    """Grant ``team`` read-write access to packages it does not fully maintain.

    Packages that are not in the registry are skipped.

    Returns:
        Names of the packages granted access (or that would be, on a dry run)
    """
    members = set(registry.team_members(team))
    granted: list[str] = []
    for name in names:
        maintainers = set(registry.maintainers(name))
        if not maintainers:
            logger.info("Package not in the registry, skipping access grant", package=name)
            continue
        missing = sorted(members - maintainers)
        if not missing:
            continue
        if dry:
            logger.info("Dry run, not granting access", package=name, team=team, missing=missing)
        else:
            logger.info("Granting team access", package=name, team=team, missing=missing)
            registry.grant_access(team, name)
        granted.append(name)
    return granted


def grant_team_access(context: PublishContext, parcels: Parcels, options: PublishOptions) -> Parcels:
    """Grants the organization team access to the published packages."""
    if options.dry:
        logger.info("Dry run, not granting access")
        return parcels
    grant_missing_access(context.registry, context.access_team, parcels.keys())
    return parcels


PUBLISH_STEPS = (
    check_repository_status,
    prepare_parcels,
    resolve_release_versions,
    update_versions,
    cut_off_changelogs,
    commit_staged_changes,
    push_committed_changes,
    publish_packages,
    grant_team_access,
)


def build_publish_steps(context: PublishContext) -> list[FunctionStep]:
    """Bind ``context`` into every publish step, in execution order."""
    return [
        FunctionStep(
            name=fn.__name__,
            fn=partial(fn, context),
            description=(fn.__doc__ or "").strip(),
        )
        for fn in PUBLISH_STEPS
    ]

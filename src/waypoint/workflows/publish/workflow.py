"""Wiring of the publish workflow onto the TaskRunner.

Checkpoint validity for publishing:
- the git head must be the commit the checkpoint was saved at
- the backupable options must be unchanged

Resume decision: ``--retry`` resumes without asking, otherwise the
operator is prompted (or, non-interactively, the run starts over).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from waypoint.contracts import CheckpointData, ReleaseType, ValidityCheck, WorkingSet
from waypoint.core.checkpoint import CheckpointStore, CheckpointValidator, StateReconstructor, resume_decision
from waypoint.core.checkpoint.decision import ResumeDecision
from waypoint.core.clock import Clock
from waypoint.core.config import WaypointSettings
from waypoint.core.events import EventBusProtocol
from waypoint.engine.runner import TaskRunner
from waypoint.engine.steps import Step
from waypoint.workflows.publish.git import Git
from waypoint.workflows.publish.options import PublishOptions, pick_backupable_options
from waypoint.workflows.publish.packages import discover_packages, suggested_release_type
from waypoint.workflows.publish.registry import Registry
from waypoint.workflows.publish.state import Parcel, ParcelState
from waypoint.workflows.publish.tasks import (
    PackageSelectionError,
    PublishContext,
    build_publish_steps,
    grant_missing_access,
    select_package_names,
)
from waypoint.workflows.publish.versions import bump_version

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UnpublishedPackage:
    """A package with unpublished changelog entries and its suggested release."""

    name: str
    current_version: str
    suggested_version: str
    release_type: ReleaseType


def create_context(settings: WaypointSettings, git: Git | None = None, registry: Registry | None = None) -> PublishContext:
    packages = discover_packages(settings.workspace.packages_path)
    return PublishContext(
        git=git if git is not None else Git(settings.workspace.root),
        packages={package.name: package for package in packages},
        registry=registry if registry is not None else Registry(settings.registry.command),
        release_branch=settings.workspace.release_branch,
        access_team=settings.registry.team,
    )


def list_unpublished(context: PublishContext, options: PublishOptions) -> list[UnpublishedPackage]:
    """Packages with unpublished changes and the version they would be released as.

    Read-only: runs outside the TaskRunner so it never touches a
    checkpoint left by a failed publish.
    """
    result = []
    for name in select_package_names(context.packages, options.model_copy(update={"package_names": ()})):
        package = context.package(name)
        release_type = ReleaseType.PRERELEASE if options.prerelease is not None else suggested_release_type(package)
        result.append(
            UnpublishedPackage(
                name=name,
                current_version=package.version,
                suggested_version=bump_version(package.version, release_type, options.prerelease),
                release_type=release_type,
            )
        )
    return result


def grant_access(context: PublishContext, options: PublishOptions) -> list[str]:
    """Grant the access team read-write access where any member is missing.

    Covers the named packages, or every workspace package when none are
    named, minus exclusions. Like list_unpublished it runs outside the
    TaskRunner. Dry runs only report.

    Returns:
        Names of the packages granted access, in package order

    Raises:
        PackageSelectionError: If a named or excluded package is unknown
    """
    unknown = sorted((set(options.package_names) | set(options.exclude)) - context.packages.keys())
    if unknown:
        raise PackageSelectionError(f"Unknown packages: {', '.join(unknown)}")
    selected = set(options.package_names or context.packages) - set(options.exclude)
    names = [name for name in sorted(context.packages) if name in selected]
    return grant_missing_access(context.registry, context.access_team, names, dry=options.dry)


def make_checkpoint_data_factory(git: Git) -> Callable[[Step, WorkingSet[Any], PublishOptions], CheckpointData]:
    """Checkpoint payload: backupable options, current head, every parcel's state."""

    def create_checkpoint_data(step: Step, parcels: WorkingSet[Any], options: PublishOptions) -> CheckpointData:
        return CheckpointData(
            options=pick_backupable_options(options),
            head=git.head_commit_hash(),
            state=parcels.state_by_key(),
        )

    return create_checkpoint_data


def make_reconstructor(context: PublishContext) -> StateReconstructor[ParcelState]:
    """Only checkpointed packages come back: the selection is part of the state."""

    def universe() -> list[Parcel]:
        return [Parcel(key=name, state=ParcelState(current_version=package.version)) for name, package in sorted(context.packages.items())]

    return StateReconstructor(universe, ParcelState, include_missing=False)


def warn_stale_checkpoint(check: ValidityCheck) -> None:
    logger.warning(
        "Found checkpoint but it no longer matches this invocation. Continuing from scratch...",
        reason=check.reason,
    )


def build_publish_runner(
    settings: WaypointSettings,
    options: PublishOptions,
    context: PublishContext,
    *,
    interactive: bool = True,
    decision: ResumeDecision | None = None,
    event_bus: EventBusProtocol | None = None,
    clock: Clock | None = None,
) -> TaskRunner[PublishOptions]:
    """Assemble the TaskRunner for a publish invocation.

    Args:
        settings: Loaded settings (checkpoint location and expiration)
        options: Publish options
        context: Shared step collaborators
        interactive: Whether the operator may be prompted to resume
        decision: Explicit resume decision, overrides retry/interactive
        event_bus: Event sink for CLI formatters
        clock: Time source for checkpoint timestamps and expiration
    """
    store = CheckpointStore(settings.checkpoint_path, settings.checkpoint.expiration, clock=clock)
    validator = CheckpointValidator(context.git.head_commit_hash, pick_backupable_options)
    if decision is None:
        decision = resume_decision(retry=options.retry, interactive=interactive)
    reconstructor = make_reconstructor(context)

    return TaskRunner(
        build_publish_steps(context),
        store,
        validate_checkpoint=validator.validate,
        should_resume=decision.should_resume,
        reconstruct=reconstructor.reconstruct,
        create_checkpoint_data=make_checkpoint_data_factory(context.git),
        on_checkpoint_discarded=warn_stale_checkpoint,
        event_bus=event_bus,
        clock=clock,
    )


__all__ = [
    "UnpublishedPackage",
    "build_publish_runner",
    "create_context",
    "grant_access",
    "list_unpublished",
    "make_checkpoint_data_factory",
    "make_reconstructor",
    "warn_stale_checkpoint",
]

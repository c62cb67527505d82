# src/waypoint/cli.py
"""Waypoint Command Line Interface.

Entry point for the waypoint CLI tool.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from waypoint import __version__
from waypoint.cli_formatters import create_console_formatters, create_json_formatters, subscribe_formatters
from waypoint.contracts import CheckpointCorruptionError, CheckpointPersistenceError, WorkingSet
from waypoint.core.checkpoint import CheckpointStore
from waypoint.core.config import DEFAULT_SETTINGS_FILE, WaypointSettings, load_settings
from waypoint.core.events import EventBus
from waypoint.core.logging import configure_logging
from waypoint.workflows.publish import (
    PackageSelectionError,
    PublishContext,
    PublishOptions,
    RegistryError,
    build_publish_runner,
    create_context,
    grant_access,
    list_unpublished,
)

__all__ = [
    "app",
]

app = typer.Typer(
    name="waypoint",
    help="Waypoint: resumable, checkpointed publish pipelines.",
    no_args_is_help=True,
)

checkpoint_app = typer.Typer(
    help="Inspect or remove the publish checkpoint.",
    no_args_is_help=True,
)
app.add_typer(checkpoint_app, name="checkpoint")


@dataclass
class CliState:
    """Global options shared with subcommands through ``ctx.obj``."""

    settings_path: Path | None = None
    verbose: bool = False
    json_logs: bool = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"waypoint version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=f"Path to settings YAML file (default: ./{DEFAULT_SETTINGS_FILE} when present).",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Waypoint: resumable, checkpointed publish pipelines."""
    # Configure logging before any subcommand runs; refined once settings are loaded
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )

    ctx.obj = CliState(settings_path=settings, verbose=verbose, json_logs=json_logs)


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj if isinstance(ctx.obj, CliState) else CliState()


def _load_settings_or_exit(state: CliState) -> WaypointSettings:
    """Load settings, reporting configuration errors on stderr with exit code 1."""
    settings_path = state.settings_path
    if settings_path is None and DEFAULT_SETTINGS_FILE.exists():
        settings_path = DEFAULT_SETTINGS_FILE

    try:
        settings = load_settings(settings_path.expanduser() if settings_path is not None else None)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings_path}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    configure_logging(
        json_output=state.json_logs or settings.logging.json_output,
        level="DEBUG" if state.verbose else settings.logging.level,
    )
    return settings


def _create_context_or_exit(settings: WaypointSettings) -> PublishContext:
    try:
        return create_context(settings)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ValueError as e:
        # Malformed or duplicated package manifests
        typer.echo(f"Error reading packages: {e}", err=True)
        raise typer.Exit(1) from None


def _create_store(settings: WaypointSettings) -> CheckpointStore:
    return CheckpointStore(settings.checkpoint_path, settings.checkpoint.expiration)


@app.command()
def publish(
    ctx: typer.Context,
    package_names: list[str] | None = typer.Argument(
        None,
        help="Packages to publish (default: every package with unpublished changes).",
    ),
    prerelease: str | None = typer.Option(
        None,
        "--prerelease",
        "-i",
        help="Publish a prerelease with this identifier, e.g. 'rc'.",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Package to leave out (repeatable).",
    ),
    tag: str = typer.Option(
        "next",
        "--tag",
        "-t",
        help="Registry tag to publish under.",
    ),
    retry: bool = typer.Option(
        False,
        "--retry",
        "-r",
        help="Resume from the last checkpoint without asking.",
    ),
    commit_message: str = typer.Option(
        "Publish packages",
        "--commit-message",
        "-m",
        help="First line of the publish commit message.",
    ),
    exclude_deps: bool = typer.Option(
        False,
        "--exclude-deps",
        help="Do not pull in dependencies of the named packages.",
    ),
    skip_repo_checks: bool = typer.Option(
        False,
        "--skip-repo-checks",
        "-S",
        help="Skip the release branch and clean work tree checks.",
    ),
    dry: bool = typer.Option(
        False,
        "--dry",
        "-d",
        help="Commit locally but neither push nor publish.",
    ),
    list_only: bool = typer.Option(
        False,
        "--list-unpublished",
        "-l",
        help="List packages with unpublished changes and exit.",
    ),
    grant_only: bool = typer.Option(
        False,
        "--grant-access",
        "-g",
        help="Grant the configured team access to packages it does not maintain yet, and exit.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Never prompt; a valid checkpoint is only used with --retry.",
    ),
    output_format: str = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Version, changelog, commit, push and publish workspace packages.

    A checkpoint is saved after every step. When a run fails, fix the
    cause and re-run the same command with --retry to pick up where it
    stopped.
    """
    if output_format not in ("console", "json"):
        typer.echo(f"Error: unknown output format '{output_format}', expected 'console' or 'json'.", err=True)
        raise typer.Exit(1)

    state = _state(ctx)
    settings = _load_settings_or_exit(state)

    try:
        options = PublishOptions(
            package_names=tuple(package_names or ()),
            exclude=tuple(exclude or ()),
            prerelease=prerelease,
            tag=tag,
            commit_message=commit_message,
            exclude_deps=exclude_deps,
            skip_repo_checks=skip_repo_checks,
            dry=dry,
            retry=retry,
            list_unpublished=list_only,
            grant_access=grant_only,
        )
    except ValidationError as e:
        typer.echo("Invalid options:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    context = _create_context_or_exit(settings)

    if options.list_unpublished:
        try:
            unpublished = list_unpublished(context, options)
        except PackageSelectionError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
        if not unpublished:
            typer.echo("No packages with unpublished changes.")
            return
        for package in unpublished:
            typer.echo(
                f"{package.name}: {package.current_version} → {package.suggested_version} ({package.release_type.value})"
            )
        return

    if options.grant_access:
        try:
            granted = grant_access(context, options)
        except (PackageSelectionError, RegistryError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
        if not granted:
            typer.echo(f"Team '{context.access_team}' already has access to every package.")
            return
        verb = "Would grant" if options.dry else "Granted"
        for name in granted:
            typer.echo(f"{verb} '{context.access_team}' access to {name}")
        return

    event_bus = EventBus()
    formatters = create_console_formatters(prefix="Publish") if output_format == "console" else create_json_formatters()
    subscribe_formatters(event_bus, formatters)

    runner = build_publish_runner(settings, options, context, interactive=not yes, event_bus=event_bus)
    runner.run_and_exit(WorkingSet(), options)


@checkpoint_app.command("show")
def checkpoint_show(ctx: typer.Context) -> None:
    """Print the stored checkpoint, if any."""
    settings = _load_settings_or_exit(_state(ctx))
    store = _create_store(settings)

    try:
        checkpoint = store.read()
    except CheckpointCorruptionError as e:
        typer.echo(f"Checkpoint is unreadable: {e}", err=True)
        raise typer.Exit(1) from None
    except CheckpointPersistenceError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if checkpoint is None:
        typer.echo("No checkpoint found.")
        return

    captured = checkpoint.captured_at_datetime.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    typer.echo(f"Checkpoint: {store.path}")
    typer.echo(f"  Step: {checkpoint.step}")
    typer.echo(f"  Captured at: {captured}{' (expired)' if store.is_expired(checkpoint) else ''}")
    typer.echo(f"  Head: {checkpoint.data.head}")
    typer.echo(f"  Items: {', '.join(sorted(checkpoint.data.state)) or '(none)'}")
    typer.echo(f"  Options: {json.dumps(checkpoint.data.options, sort_keys=True)}")


@checkpoint_app.command("clear")
def checkpoint_clear(
    ctx: typer.Context,
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt.",
    ),
) -> None:
    """Delete the stored checkpoint."""
    settings = _load_settings_or_exit(_state(ctx))
    store = _create_store(settings)

    if not store.exists():
        typer.echo("No checkpoint found.")
        return

    if not yes:
        confirm = typer.confirm(f"Delete checkpoint {store.path}?")
        if not confirm:
            typer.echo("Aborted.")
            raise typer.Exit(1)

    try:
        store.clear()
    except CheckpointPersistenceError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    typer.echo("Checkpoint removed.")


if __name__ == "__main__":
    app()

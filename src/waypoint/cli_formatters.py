# src/waypoint/cli_formatters.py
"""CLI event formatter factories for runner output.

Each factory returns a dict mapping event types to handler callables,
suitable for subscribing to an EventBus. Human-readable output goes to
stdout; structured JSON lines are available for machine consumers.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import typer

from waypoint.contracts import (
    CheckpointDiscarded,
    CheckpointRestored,
    RunFinished,
    StepCompleted,
    StepFailed,
    StepSkipped,
    StepStarted,
)
from waypoint.core.events import EventBusProtocol


def _format_duration(seconds: float) -> str:
    return f"{seconds:.2f}s" if seconds < 60 else f"{seconds / 60:.1f}m"


def create_console_formatters(prefix: str = "Run") -> dict[type, Callable[..., None]]:
    """Create console formatters for human-readable CLI output.

    Args:
        prefix: Label for the summary line (e.g. "Publish").
    """

    def _format_checkpoint_discarded(event: CheckpointDiscarded) -> None:
        typer.echo(f"⚠ Ignoring checkpoint: {event.reason}", err=True)

    def _format_checkpoint_restored(event: CheckpointRestored) -> None:
        captured = event.captured_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        typer.echo(f"↻ Resuming after '{event.step}' (checkpoint from {captured}, {event.item_count} items)")

    def _format_step_started(event: StepStarted) -> None:
        typer.echo(f"[{event.index + 1}/{event.total}] {event.name}...")

    def _format_step_completed(event: StepCompleted) -> None:
        typer.echo(f"  ✓ {event.name} completed in {_format_duration(event.duration_seconds)}")

    def _format_step_skipped(event: StepSkipped) -> None:
        typer.echo(f"  ↷ {event.name} skipped (already done)")

    def _format_step_failed(event: StepFailed) -> None:
        typer.echo(f"  ✗ {event.name} failed: {event.error_message}", err=True)

    def _format_run_finished(event: RunFinished) -> None:
        symbol = "✓" if event.exit_code == 0 else "✗"
        typer.echo(
            f"\n{symbol} {prefix} {event.status.value.upper()}: "
            f"{event.steps_completed} steps completed | "
            f"{event.steps_skipped} skipped | "
            f"{_format_duration(event.duration_seconds)} total"
        )

    return {
        CheckpointDiscarded: _format_checkpoint_discarded,
        CheckpointRestored: _format_checkpoint_restored,
        StepStarted: _format_step_started,
        StepCompleted: _format_step_completed,
        StepSkipped: _format_step_skipped,
        StepFailed: _format_step_failed,
        RunFinished: _format_run_finished,
    }


def create_json_formatters() -> dict[type, Callable[..., None]]:
    """Create JSON formatters for structured CLI output (one object per line)."""

    def _emit(payload: dict[str, object]) -> None:
        typer.echo(json.dumps(payload))

    def _format_checkpoint_discarded(event: CheckpointDiscarded) -> None:
        _emit({"event": "checkpoint_discarded", "reason": event.reason})

    def _format_checkpoint_restored(event: CheckpointRestored) -> None:
        _emit(
            {
                "event": "checkpoint_restored",
                "step": event.step,
                "captured_at": event.captured_at.isoformat(),
                "item_count": event.item_count,
            }
        )

    def _format_step_started(event: StepStarted) -> None:
        _emit({"event": "step_started", "name": event.name, "index": event.index, "total": event.total})

    def _format_step_completed(event: StepCompleted) -> None:
        _emit(
            {
                "event": "step_completed",
                "name": event.name,
                "index": event.index,
                "duration_seconds": event.duration_seconds,
            }
        )

    def _format_step_skipped(event: StepSkipped) -> None:
        _emit({"event": "step_skipped", "name": event.name, "index": event.index})

    def _format_step_failed(event: StepFailed) -> None:
        _emit(
            {
                "event": "step_failed",
                "name": event.name,
                "index": event.index,
                "error": event.error_message,
                "error_type": type(event.error).__name__,
            }
        )

    def _format_run_finished(event: RunFinished) -> None:
        _emit(
            {
                "event": "run_finished",
                "status": event.status.value,
                "steps_completed": event.steps_completed,
                "steps_skipped": event.steps_skipped,
                "duration_seconds": event.duration_seconds,
                "exit_code": event.exit_code,
            }
        )

    return {
        CheckpointDiscarded: _format_checkpoint_discarded,
        CheckpointRestored: _format_checkpoint_restored,
        StepStarted: _format_step_started,
        StepCompleted: _format_step_completed,
        StepSkipped: _format_step_skipped,
        StepFailed: _format_step_failed,
        RunFinished: _format_run_finished,
    }


def subscribe_formatters(event_bus: EventBusProtocol, formatters: dict[type, Callable[..., None]]) -> None:
    """Subscribe every formatter in ``formatters`` to ``event_bus``."""
    for event_type, handler in formatters.items():
        event_bus.subscribe(event_type, handler)

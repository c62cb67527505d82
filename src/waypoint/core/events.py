"""Event bus for runner observability.

Provides a simple synchronous event bus for emitting domain events from the
TaskRunner to CLI formatters, keeping presentation out of the runner.
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations.

    Allows both EventBus and NullEventBus to satisfy the interface
    without inheritance.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type."""
        ...

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers."""
        ...


class EventBus:
    """Simple synchronous event bus.

    Handlers are called in subscription order. Handler exceptions
    propagate to the caller.

    Example:
        bus = EventBus()
        bus.subscribe(StepStarted, lambda e: print(f"[{e.index + 1}/{e.total}] {e.name}"))
        bus.emit(StepStarted(name="update_versions", index=2, total=7))
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers of its exact type.

        Events with no subscribers are silently ignored.
        """
        handlers = self._subscribers.get(type(event), [])
        for handler in handlers:
            handler(event)


class NullEventBus:
    """No-op event bus for library use where no CLI is present.

    Does NOT inherit from EventBus, so code that subscribes expecting
    callbacks is easy to spot.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        pass

    def emit(self, event: T) -> None:
        pass

# tests/core/test_events.py
"""Tests for EventBus infrastructure."""

from dataclasses import dataclass

import pytest

from waypoint.core.events import EventBus, EventBusProtocol, NullEventBus


@dataclass(frozen=True)
class SampleEvent:
    """Event type for EventBus tests."""

    value: str


@dataclass(frozen=True)
class AnotherEvent:
    """Another event type."""

    count: int


class TestEventBus:
    """Tests for EventBus implementation."""

    def test_subscribe_and_emit(self) -> None:
        bus = EventBus()
        received: list[SampleEvent] = []

        bus.subscribe(SampleEvent, received.append)
        bus.emit(SampleEvent(value="hello"))

        assert received == [SampleEvent(value="hello")]

    def test_handlers_called_in_subscription_order(self) -> None:
        bus = EventBus()
        calls: list[str] = []

        bus.subscribe(SampleEvent, lambda e: calls.append("first"))
        bus.subscribe(SampleEvent, lambda e: calls.append("second"))
        bus.emit(SampleEvent(value="x"))

        assert calls == ["first", "second"]

    def test_dispatch_by_exact_type(self) -> None:
        bus = EventBus()
        samples: list[SampleEvent] = []
        others: list[AnotherEvent] = []

        bus.subscribe(SampleEvent, samples.append)
        bus.subscribe(AnotherEvent, others.append)
        bus.emit(AnotherEvent(count=3))

        assert samples == []
        assert others == [AnotherEvent(count=3)]

    def test_emit_without_subscribers_is_ignored(self) -> None:
        EventBus().emit(SampleEvent(value="nobody listens"))

    def test_handler_exceptions_propagate(self) -> None:
        bus = EventBus()

        def broken(event: SampleEvent) -> None:
            raise RuntimeError("formatter bug")

        bus.subscribe(SampleEvent, broken)
        with pytest.raises(RuntimeError, match="formatter bug"):
            bus.emit(SampleEvent(value="x"))


class TestNullEventBus:
    """Tests for the no-op event bus."""

    def test_subscribed_handlers_never_called(self) -> None:
        bus = NullEventBus()
        received: list[SampleEvent] = []

        bus.subscribe(SampleEvent, received.append)
        bus.emit(SampleEvent(value="x"))

        assert received == []

    def test_both_satisfy_protocol(self) -> None:
        buses: list[EventBusProtocol] = [EventBus(), NullEventBus()]
        for bus in buses:
            bus.emit(SampleEvent(value="x"))

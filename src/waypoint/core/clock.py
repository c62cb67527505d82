# src/waypoint/core/clock.py
"""Clock abstraction for testable checkpoint expiration.

Checkpoints are stamped with wall-clock epoch milliseconds and compared
against an expiration duration on load. This module lets tests control
that time instead of sleeping.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract wall clock.

    Implementations:
    - SystemClock: Uses time.time() (production)
    - MockClock: Returns controllable times (testing)
    """

    def now_ms(self) -> int:
        """Return current wall-clock time as integer epoch milliseconds."""
        ...


class SystemClock:
    """Production clock using time.time().

    Wall-clock rather than monotonic: checkpoint timestamps must stay
    meaningful across process restarts.
    """

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class MockClock:
    """Controllable clock for deterministic testing.

    Example:
        clock = MockClock(start_ms=0)
        store = CheckpointStore(path, expiration=timedelta(hours=1), clock=clock)

        store.save(checkpoint)  # captured at t=0 by the caller
        clock.advance(3_600_000)
        assert store.load() is None  # expired
    """

    def __init__(self, start_ms: int = 0) -> None:
        self._current = start_ms

    def now_ms(self) -> int:
        return self._current

    def advance(self, ms: int) -> None:
        """Advance mock time by ``ms`` milliseconds.

        Raises:
            ValueError: If ms is negative.
        """
        if ms < 0:
            raise ValueError(f"Cannot advance time by negative amount: {ms}")
        self._current += ms

    def set(self, value_ms: int) -> None:
        """Set mock time to an absolute value (may go backwards)."""
        self._current = value_ms


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()

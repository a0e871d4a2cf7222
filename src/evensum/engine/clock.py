# src/evensum/engine/clock.py
"""Clock abstraction for the global completion deadline.

The scheduler computes its deadline and every remaining-budget check from
an injected Clock, so tests can exhaust the deadline without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of monotonic time in seconds."""

    def monotonic(self) -> float: ...


class SystemClock:
    """Clock backed by time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


class MockClock:
    """Manually advanced clock for deterministic deadline tests.

    Example:
        clock = MockClock()
        scheduler = Scheduler(ids, reducer, deadline_seconds=5.0, clock=clock)
        clock.advance(10.0)  # every unfilled slot is now past the deadline
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = start

    def monotonic(self) -> float:
        return self._current

    def advance(self, seconds: float) -> None:
        """Move time forward.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds


DEFAULT_CLOCK: Clock = SystemClock()

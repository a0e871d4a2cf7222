# src/evensum/contracts/enums.py
"""Status codes and kinds shared between the engine, resources and CLI."""

from enum import StrEnum


class FailureKind(StrEnum):
    """Why a resource contributed nothing to the running total.

    All kinds are per-resource and non-fatal.
    """

    IO = "io"
    PARSE = "parse"
    TIMEOUT = "timeout"


class SchedulerState(StrEnum):
    """Lifecycle of a single scheduler run.

    Transitions are strictly forward:
    IDLE -> RUNNING -> DRAINING -> COMPLETED
    """

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETED = "completed"


class TimeUnit(StrEnum):
    """Unit in which the global completion deadline is expressed."""

    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"

    def to_seconds(self, amount: float) -> float:
        """Convert an amount in this unit to seconds."""
        return amount * _SECONDS_PER_UNIT[self]


_SECONDS_PER_UNIT: dict[TimeUnit, float] = {
    TimeUnit.MILLISECONDS: 0.001,
    TimeUnit.SECONDS: 1.0,
    TimeUnit.MINUTES: 60.0,
}

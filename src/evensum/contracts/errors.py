# src/evensum/contracts/errors.py
"""Exception taxonomy for evensum runs.

Per-resource errors (IOFailure, ParseFailure, TimeoutFailure) are isolated:
they are recorded against a single resource and contribute zero to the
running total. Only PoolStartupError aborts a whole run.
"""

from __future__ import annotations

from collections.abc import Hashable

from evensum.contracts.enums import FailureKind


class ResourceError(Exception):
    """Base class for failures scoped to one resource.

    Attributes:
        resource_id: Handle of the resource that failed
        kind: Failure classification recorded in the run outcome
    """

    kind: FailureKind

    def __init__(self, resource_id: Hashable, message: str) -> None:
        super().__init__(message)
        self.resource_id = resource_id


class IOFailure(ResourceError):
    """Resource could not be opened or read."""

    kind = FailureKind.IO


class ParseFailure(ResourceError):
    """Resource contains a token that is not a signed integer.

    Attributes:
        line_number: 1-based line of the offending token (None if unknown)
        token: The offending token (None if unknown)
    """

    kind = FailureKind.PARSE

    def __init__(
        self,
        resource_id: Hashable,
        message: str,
        *,
        line_number: int | None = None,
        token: str | None = None,
    ) -> None:
        super().__init__(resource_id, message)
        self.line_number = line_number
        self.token = token


class TimeoutFailure(ResourceError):
    """Worker did not report before the global deadline.

    Never raised by the engine; instances exist so a timeout can be
    described with the same shape as the other failures.
    """

    kind = FailureKind.TIMEOUT


class PoolStartupError(RuntimeError):
    """The worker pool could not be created or could not start a thread.

    This is the only run-fatal condition.
    """


class SchedulerStateError(RuntimeError):
    """An operation was attempted in the wrong scheduler state."""

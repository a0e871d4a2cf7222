# src/evensum/contracts/results.py
"""Result types flowing from workers through the aggregator to callers.

PartialResult is produced once per worker and consumed once by the
aggregator. RunOutcome is created once, at the end of the drain, and is
read-only thereafter.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Literal

from evensum.contracts.enums import FailureKind
from evensum.contracts.errors import ResourceError


@dataclass(frozen=True)
class ResourceFailure:
    """Diagnostic record of one resource that contributed nothing."""

    resource_id: Hashable
    kind: FailureKind
    message: str

    @classmethod
    def from_error(cls, error: ResourceError) -> ResourceFailure:
        """Describe a per-resource exception."""
        return cls(resource_id=error.resource_id, kind=error.kind, message=str(error))

    @classmethod
    def timeout(cls, resource_id: Hashable, deadline_seconds: float) -> ResourceFailure:
        """Describe a worker that missed the global deadline."""
        return cls(
            resource_id=resource_id,
            kind=FailureKind.TIMEOUT,
            message=f"no result within {deadline_seconds:g}s global deadline",
        )


@dataclass(frozen=True)
class PartialResult:
    """One worker's outcome for its resource.

    Use the factory methods to create instances.

    Invariant: status="success" implies value >= 0 and failure is None;
    status="failed" implies value == 0 and failure is set.
    """

    resource_id: Hashable
    status: Literal["success", "failed"]
    value: int
    failure: ResourceFailure | None = None

    def __post_init__(self) -> None:
        if self.status == "success":
            if self.value < 0:
                raise ValueError(f"Partial sum for resource {self.resource_id!r} must be non-negative, got {self.value}")
            if self.failure is not None:
                raise ValueError("Successful PartialResult cannot carry a failure")
        elif self.failure is None or self.value != 0:
            raise ValueError("Failed PartialResult must carry a failure and a zero value")

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, resource_id: Hashable, value: int) -> PartialResult:
        """Create a successful result carrying a non-negative partial sum."""
        return cls(resource_id=resource_id, status="success", value=value)

    @classmethod
    def failed(cls, failure: ResourceFailure) -> PartialResult:
        """Create a failed result that contributes zero to the total."""
        return cls(resource_id=failure.resource_id, status="failed", value=0, failure=failure)


@dataclass(frozen=True)
class TotalReading:
    """A read of the running total, labelled partial while a run is in flight."""

    value: int
    partial: bool


@dataclass(frozen=True)
class RunOutcome:
    """Final result of a run.

    Attributes:
        total: Sum of partial results from workers that succeeded in time
        snapshots: Running total after each successful fold, in submission order
        failures: One record per failed or timed-out resource, in submission order
        resource_count: Number of resources handed to the scheduler
    """

    total: int
    snapshots: tuple[int, ...]
    failures: tuple[ResourceFailure, ...]
    resource_count: int

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def succeeded_count(self) -> int:
        return self.resource_count - len(self.failures)

    @property
    def timed_out(self) -> tuple[Hashable, ...]:
        """Resource ids that missed the deadline."""
        return tuple(f.resource_id for f in self.failures if f.kind == FailureKind.TIMEOUT)

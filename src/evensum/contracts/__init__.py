# src/evensum/contracts/__init__.py
"""Shared contracts: enums, exceptions and result types."""

from evensum.contracts.enums import FailureKind, SchedulerState, TimeUnit
from evensum.contracts.errors import (
    IOFailure,
    ParseFailure,
    PoolStartupError,
    ResourceError,
    SchedulerStateError,
    TimeoutFailure,
)
from evensum.contracts.results import PartialResult, ResourceFailure, RunOutcome, TotalReading

__all__ = [
    "FailureKind",
    "IOFailure",
    "ParseFailure",
    "PartialResult",
    "PoolStartupError",
    "ResourceError",
    "ResourceFailure",
    "RunOutcome",
    "SchedulerState",
    "SchedulerStateError",
    "TimeUnit",
    "TimeoutFailure",
    "TotalReading",
]
